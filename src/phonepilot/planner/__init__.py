"""
Command planning via a language model.

Builds the prompt, calls the chat-completions endpoint, and decodes the
JSON answer into a typed action list.
"""

from phonepilot.planner.client import PlannerClient
from phonepilot.planner.decoder import DecodedPlan, decode_actions, decode_plan
from phonepilot.planner.prompts import build_messages

__all__ = ["DecodedPlan", "PlannerClient", "build_messages", "decode_actions", "decode_plan"]
