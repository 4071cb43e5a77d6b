"""
Command orchestration.

  Command → Snapshot → Prompt → Planner (LLM) → Decode → Execute → History
"""

from __future__ import annotations

import logging
import threading

from phonepilot.channel import Broadcast
from phonepilot.config import Settings, get_settings
from phonepilot.errors import ConfigurationError, HostUnavailableError, PlannerError
from phonepilot.execution import ExecutionEngine
from phonepilot.history import HistoryStore
from phonepilot.host.base import ActionHost
from phonepilot.models import (
    ActionResult,
    CommandHistory,
    CommandOutcome,
    EventKind,
    PipelineEvent,
    describe_action,
)
from phonepilot.planner import PlannerClient, build_messages, decode_plan

logger = logging.getLogger(__name__)


def _summaries(results: list[ActionResult]) -> list[str]:
    return [f"{describe_action(r.action)}: {'✓' if r.success else '✗'}" for r in results]


class CommandOrchestrator:
    """
    Runs one command at a time through the full pipeline.

    The host is injected by the caller, who owns its lifecycle. Progress and
    log lines are published on ``events``; each ActionResult also goes out
    on ``results``. Every command that reaches the planner leaves exactly
    one history entry, whether it succeeded or not.

    Concurrent ``process_command`` calls are not guarded; callers must
    serialize them.
    """

    def __init__(
        self,
        host: ActionHost,
        settings: Settings | None = None,
        planner: PlannerClient | None = None,
        history: HistoryStore | None = None,
    ) -> None:
        self._host = host
        self._settings = settings or get_settings()
        self._planner = planner or PlannerClient(
            base_url=self._settings.groq_base_url,
            timeout_seconds=self._settings.planner_timeout_seconds,
            temperature=self._settings.planner_temperature,
            max_tokens=self._settings.planner_max_tokens,
        )
        if history is None:
            history = HistoryStore(data_dir=self._settings.history_data_dir or None)
        self.history = history
        self.events: Broadcast[PipelineEvent] = Broadcast()
        self.results: Broadcast[ActionResult] = Broadcast()

    def _emit(self, kind: EventKind, message: str) -> None:
        self.events.publish(PipelineEvent(kind=kind, message=message))

    def _record(self, command: str, summaries: list[str], success: bool) -> CommandHistory:
        entry = CommandHistory(user_command=command, actions=summaries, success=success)
        try:
            self.history.append(entry)
        except Exception as e:
            logger.warning("Failed to record history: %s", e, exc_info=True)
        return entry

    def process_command(
        self,
        command: str,
        conversation_history: list[str] | None = None,
        cancel_token: threading.Event | None = None,
    ) -> CommandOutcome | None:
        """
        Plan and execute one command.

        Returns None for a blank command. Raises HostUnavailableError when
        no snapshot has been published, and re-raises configuration and
        planner errors after recording a failed history entry. Execution
        failures do not raise: they are reported in the returned outcome.
        """
        if not command or not command.strip():
            return None

        self._emit(EventKind.STATUS, "Processing command...")

        # 1. Whatever snapshot is current; may be slightly stale
        state = self._host.current_snapshot()
        if state is None:
            self._emit(EventKind.STATUS, "Error: action host is not active")
            raise HostUnavailableError("Action host has not published a screen snapshot")

        # 2. Plan (LLM) and decode
        try:
            messages = build_messages(command, state, conversation_history)
            raw = self._planner.plan(
                self._settings.groq_api_key,
                self._settings.selected_model,
                messages,
            )
            plan = decode_plan(raw)
        except (ConfigurationError, PlannerError) as e:
            logger.warning(
                "Planning failed",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            self._emit(EventKind.LOG, f"AI error: {e}")
            self._emit(EventKind.STATUS, f"Error: {e}")
            self._record(command, [], False)
            raise

        for warning in plan.warnings:
            self._emit(EventKind.LOG, f"Skipped action: {warning}")
        logger.info(
            "Planner produced actions",
            extra={"actions": len(plan.actions), "dropped": len(plan.warnings)},
        )

        # 3. Execute
        engine = ExecutionEngine(
            self._host,
            settle_seconds=self._settings.settle_interval_ms / 1000,
            speech_enabled=self._settings.voice_enabled,
            cancel_token=cancel_token,
            results=self.results,
            events=self.events,
        )
        success, results = engine.run(plan.actions)

        # 4. History
        summaries = _summaries(results)
        entry = self._record(command, summaries, success)
        self._emit(
            EventKind.STATUS,
            "Command completed" if success else "Command completed with errors",
        )
        return CommandOutcome(
            command=command,
            success=success,
            thinking=plan.thinking,
            results=results,
            summaries=summaries,
            history_id=entry.id,
        )


def build_orchestrator(host: ActionHost, settings: Settings | None = None) -> CommandOrchestrator:
    """Wire an orchestrator from settings (planner endpoint, history persistence)."""
    return CommandOrchestrator(host, settings=settings or get_settings())
