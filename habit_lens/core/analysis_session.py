"""
Analysis session: the conversational exchange about one template's data.

A session is created when a template is activated and discarded when the
user switches to another template (or deletes it). It owns the ordered
conversation and walks this lifecycle for every question:

  idle → composing → awaiting_model → {answered | failed} → idle

At most one model call is outstanding per session. A second submit while
awaiting the model is rejected rather than queued. The busy check and the
transition into awaiting_model happen before the first suspension point, so
concurrent submits on the same event loop cannot both pass.
"""

import asyncio
import logging
from uuid import UUID

from habit_lens.chains.analyze_entries import complete_analysis
from habit_lens.core.analysis_inputs import build_analysis_messages
from habit_lens.core.errors import (
    HabitLensError,
    MissingCredential,
    SessionBusy,
    ValidationError,
)
from habit_lens.core.logging import get_logger, log_with_context
from habit_lens.core.schemas_analysis import (
    AnalysisExchange,
    AnalysisTurn,
    ChatMessage,
    SessionSnapshot,
    SessionState,
)
from habit_lens.core.schemas_settings import UserSettings
from habit_lens.core.schemas_templates import Template
from habit_lens.db import analyses as analyses_db
from habit_lens.db import entries as entries_db

logger = get_logger(__name__)


class AnalysisSession:
    """Conversation state and request lifecycle for one (user, template)."""

    def __init__(self, user_id: UUID, template: Template, settings: UserSettings):
        self.user_id = user_id
        self.template = template
        self.settings = settings
        self.state = SessionState.IDLE
        self.draft: str | None = None
        self.messages: list[ChatMessage] = []
        self.last_error: str | None = None
        self.last_outcome: SessionState | None = None

    @property
    def template_id(self) -> UUID:
        return self.template.id

    @property
    def is_busy(self) -> bool:
        return self.state == SessionState.AWAITING_MODEL

    def _ensure_not_busy(self) -> None:
        if self.is_busy:
            raise SessionBusy()

    def update_settings(self, settings: UserSettings) -> None:
        self.settings = settings

    def update_template(self, template: Template) -> None:
        """Pick up renamed fields or a new goal for the next prompt."""
        self.template = template

    def compose(self, query: str) -> None:
        """Record an unsent question."""
        self._ensure_not_busy()
        self.draft = query
        self.state = SessionState.COMPOSING if query.strip() else SessionState.IDLE

    def check_ready(self) -> None:
        """
        Raise MissingCredential when no API key is configured.

        Called before any state change so a session without a key never
        reaches awaiting_model.
        """
        if not self.settings.has_api_key:
            raise MissingCredential()

    async def submit(self, query: str | None = None) -> AnalysisTurn:
        """
        Ask the model a question grounded in the template's entries.

        Args:
            query: Question text; falls back to the composed draft

        Returns:
            AnalysisTurn with the answer. ``warning`` is set when the answer
            could not be saved to history; the answer is still kept.

        Raises:
            SessionBusy: A request is already outstanding
            ValidationError: The question is empty
            MissingCredential: No API key configured
            NoData: The template has no entries
            TransportError: The model call failed
            HabitLensError: Any other unexpected failure
            PersistenceError: Entries could not be loaded
        """
        self._ensure_not_busy()
        text = (query if query is not None else self.draft or "").strip()
        if not text:
            raise ValidationError("Please enter a question about your data")
        self.check_ready()

        self.state = SessionState.AWAITING_MODEL
        self.draft = text
        self.last_error = None
        history = list(self.messages)

        try:
            entries = await asyncio.to_thread(
                entries_db.list_entries_by_template, self.template.id, self.user_id
            )
            messages = build_analysis_messages(self.template, entries, history, text)
            response = await complete_analysis(
                api_key=self.settings.openai_api_key,
                model=self.settings.openai_model.value,
                messages=messages,
            )
        except HabitLensError as e:
            self._fail(e.message)
            raise
        except Exception as e:
            logger.error(f"Unexpected analysis failure for template {self.template.id}", exc_info=True)
            error = HabitLensError()
            self._fail(error.message)
            raise error from e

        self.messages = [
            *history,
            ChatMessage(role="user", content=text),
            ChatMessage(role="assistant", content=response),
        ]
        self.draft = None
        self.state = SessionState.ANSWERED
        self.last_outcome = SessionState.ANSWERED

        exchange: AnalysisExchange | None = None
        warning: str | None = None
        try:
            exchange = await asyncio.to_thread(
                analyses_db.create_analysis, self.user_id, self.template.id, text, response
            )
        except HabitLensError as e:
            warning = f"The analysis was generated but could not be saved to history: {e.message}"
            logger.warning(f"Failed to save analysis for template {self.template.id}: {e.message}")

        log_with_context(
            logger,
            logging.INFO,
            "Analysis answered",
            user_id=self.user_id,
            template_id=self.template.id,
            turns=len(self.messages) // 2,
            saved=exchange is not None,
        )
        self.state = SessionState.IDLE
        return AnalysisTurn(query=text, response=response, exchange=exchange, warning=warning)

    def _fail(self, message: str) -> None:
        # History stays as it was before the submit; the question is kept as the draft.
        self.state = SessionState.FAILED
        self.last_outcome = SessionState.FAILED
        self.last_error = message
        log_with_context(
            logger,
            logging.INFO,
            "Analysis failed",
            user_id=self.user_id,
            template_id=self.template.id,
            error=message,
        )
        self.state = SessionState.IDLE

    def load_exchange(self, exchange: AnalysisExchange) -> None:
        """Replace the conversation with a saved (query, response) pair."""
        self._ensure_not_busy()
        if exchange.template_id != self.template.id:
            raise ValidationError("Saved analysis belongs to a different template")
        self.messages = [
            ChatMessage(role="user", content=exchange.query),
            ChatMessage(role="assistant", content=exchange.response),
        ]
        self.draft = None
        self.last_error = None
        self.state = SessionState.IDLE

    def reset(self) -> None:
        self._ensure_not_busy()
        self.messages = []
        self.draft = None
        self.last_error = None
        self.last_outcome = None
        self.state = SessionState.IDLE

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            template_id=self.template.id,
            state=self.state,
            draft=self.draft,
            messages=list(self.messages),
            last_error=self.last_error,
            last_outcome=self.last_outcome,
            has_api_key=self.settings.has_api_key,
        )


class AnalysisSessionRegistry:
    """
    Live sessions, one active template per user.

    Activating a different template discards the previous session for that
    user. Sessions never share state.
    """

    def __init__(self):
        self._sessions: dict[UUID, AnalysisSession] = {}

    def activate(self, user_id: UUID, template: Template, settings: UserSettings) -> AnalysisSession:
        current = self._sessions.get(user_id)
        if current is not None and current.template_id == template.id:
            current.update_template(template)
            current.update_settings(settings)
            return current

        if current is not None:
            logger.debug(f"Discarding analysis session for template {current.template_id}")
        session = AnalysisSession(user_id, template, settings)
        self._sessions[user_id] = session
        return session

    def get(self, user_id: UUID, template_id: UUID) -> AnalysisSession | None:
        session = self._sessions.get(user_id)
        if session is None or session.template_id != template_id:
            return None
        return session

    def active(self, user_id: UUID) -> AnalysisSession | None:
        return self._sessions.get(user_id)

    def discard(self, user_id: UUID, template_id: UUID | None = None) -> bool:
        """Drop the user's session; when template_id is given, only if it matches."""
        session = self._sessions.get(user_id)
        if session is None:
            return False
        if template_id is not None and session.template_id != template_id:
            return False
        del self._sessions[user_id]
        return True

    def refresh_settings(self, user_id: UUID, settings: UserSettings) -> None:
        session = self._sessions.get(user_id)
        if session is not None:
            session.update_settings(settings)

    def __len__(self) -> int:
        return len(self._sessions)
