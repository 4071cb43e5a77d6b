"""Prompt templates for the command planner."""

from pydantic import BaseModel

from phonepilot.models import ScreenState
from phonepilot.snapshot.serializer import format_screen_state

SYSTEM_PROMPT = """You are an AI assistant that controls an Android phone. You analyze the current screen and execute user commands by generating a sequence of actions.

AVAILABLE ACTIONS:
1. click - Click on element: {"type": "click", "params": {"element_id": "id"}} or {"type": "click", "params": {"x": 100, "y": 200}}
2. long_click - Long press: {"type": "long_click", "params": {"element_id": "id"}}
3. type_text - Input text: {"type": "type_text", "params": {"text": "hello", "element_id": "id"}}
4. scroll - Scroll screen: {"type": "scroll", "params": {"direction": "down"}} (up/down/left/right)
5. open_app - Open app: {"type": "open_app", "params": {"package": "com.whatsapp"}}
6. back - Go back: {"type": "back"}
7. home - Go to home screen: {"type": "home"}
8. wait - Wait: {"type": "wait", "params": {"ms": 1000}}
9. speak - Say to user: {"type": "speak", "params": {"message": "Done!"}}
10. complete - Task finished: {"type": "complete"}
11. error - Cannot complete: {"type": "error", "params": {"message": "reason"}}

COMMON PACKAGES:
- WhatsApp: com.whatsapp
- Telegram: org.telegram.messenger
- Chrome: com.android.chrome
- YouTube: com.google.android.youtube
- Settings: com.android.settings
- Phone: com.android.dialer
- Messages: com.google.android.apps.messaging
- Camera: com.android.camera
- Maps: com.google.android.apps.maps
- Gmail: com.google.android.gm
- Calendar: com.google.android.calendar

RULES:
1. Analyze screen elements carefully before acting
2. Use element IDs when available, coordinates as fallback
3. For text input: first click the field, then type
4. Generate minimal actions needed
5. Always end with "complete" or "error"
6. If screen doesn't show expected content, try scrolling or waiting

RESPONSE FORMAT (JSON only):
{
    "thinking": "brief analysis of screen and plan",
    "actions": [
        {"type": "action_type", "params": {...}},
        ...
    ]
}"""


class ChatMessage(BaseModel):
    """One chat-completions message."""

    role: str
    content: str


def build_user_prompt(command: str, screen_state: str) -> str:
    """Build the final user turn: the literal command plus the serialized screen."""
    return f"""USER COMMAND: {command}

CURRENT SCREEN STATE:
{screen_state}

Generate actions to complete this command. Response must be valid JSON."""


def build_messages(
    command: str,
    state: ScreenState,
    conversation_history: list[str] | None = None,
) -> list[ChatMessage]:
    """
    Assemble the ordered message list for one planner call.

    Prior turns are appended verbatim, all with the user role; no attempt
    is made to infer which side of the conversation each one came from.
    """
    messages = [ChatMessage(role="system", content=SYSTEM_PROMPT)]
    for turn in conversation_history or []:
        messages.append(ChatMessage(role="user", content=turn))
    messages.append(
        ChatMessage(role="user", content=build_user_prompt(command, format_screen_state(state)))
    )
    return messages
