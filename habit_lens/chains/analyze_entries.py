"""LLM chain for answering questions about a user's tracked data."""

import openai
from openai import AsyncOpenAI

from habit_lens.core.config import get_settings
from habit_lens.core.errors import TransportError
from habit_lens.core.logging import get_logger
from habit_lens.core.schemas_analysis import ChatMessage

logger = get_logger(__name__)

ANALYSIS_TEMPERATURE = 0.7
ANALYSIS_MAX_TOKENS = 1000


async def complete_analysis(
    *,
    api_key: str,
    model: str,
    messages: list[ChatMessage],
) -> str:
    """
    Send an assembled message list to OpenAI and return the answer text.

    Args:
        api_key: The user's own OpenAI API key
        model: The user's selected model id
        messages: Full role-tagged message list

    Returns:
        Content of the first completion choice

    Raises:
        TransportError: On timeout, connectivity, auth or provider failure,
            or when the model returns no content
    """
    settings = get_settings()
    client = AsyncOpenAI(api_key=api_key, timeout=settings.LLM_TIMEOUT_SECONDS, max_retries=0)

    logger.info(f"Calling {model} for analysis ({len(messages)} messages)")

    try:
        response = await client.chat.completions.create(
            model=model,
            messages=[message.model_dump() for message in messages],
            temperature=ANALYSIS_TEMPERATURE,
            max_tokens=ANALYSIS_MAX_TOKENS,
        )
    except openai.APITimeoutError as e:
        raise TransportError(
            f"The analysis request timed out after {settings.LLM_TIMEOUT_SECONDS:g} seconds"
        ) from e
    except openai.APIConnectionError as e:
        raise TransportError("Could not connect to OpenAI") from e
    except openai.AuthenticationError as e:
        raise TransportError("OpenAI rejected the API key. Please check it in settings.") from e
    except openai.APIStatusError as e:
        raise TransportError(f"OpenAI returned an error ({e.status_code}): {e.message}") from e
    except openai.OpenAIError as e:
        raise TransportError(f"OpenAI request failed: {e}") from e
    finally:
        await client.close()

    content = response.choices[0].message.content if response.choices else None
    if not content:
        raise TransportError("No analysis generated")

    return content
