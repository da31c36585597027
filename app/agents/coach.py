"""
Dating Coach Agent
Private advice for one user: profile tips, conversation starters,
first-date ideas and reading a match's messages.
"""

from typing import List, Optional

from .config import call_llm


def get_coach_system_prompt(user_name: str) -> str:
    """Coach instructions personalized for the asking user."""
    return f"""
You are a friendly, PRIVATE dating coach for {user_name} on Spark, a dating app.

PRIVACY RULES:
1. Everything you say is private to {user_name}
2. The other person never sees your advice
3. Never claim to know what the other person privately thinks

YOU HELP WITH:
- Improving their profile (bio, photos, interests)
- Conversation starters based on shared interests
- First date ideas and etiquette
- Reading signals in a conversation with a match
- Staying safe when meeting someone new

NEVER:
- Write full messages for {user_name} to copy-paste
- Encourage manipulation or pressure tactics
- Be judgmental or harsh

STYLE:
Warm and honest, like a wise friend. Practical and specific.
Reply in a few short conversational paragraphs.
If you cannot answer something, say so.
"""


def format_profile(name: str, profile: Optional[dict]) -> str:
    if not profile:
        return ""
    interests = ", ".join(profile.get("interests") or []) or "Unknown"
    return f"""
{name}'s Profile:
- Age: {profile.get('age') or 'Unknown'}
- Bio: {profile.get('bio') or 'None'}
- Interests: {interests}
"""


def build_coach_prompt(
    user_id: str,
    user_name: str,
    question: str,
    match_name: Optional[str] = None,
    user_profile: Optional[dict] = None,
    match_profile: Optional[dict] = None,
    conversation: Optional[List[dict]] = None,
) -> str:
    """Assemble the user turn: profiles, recent chat and the question."""
    parts = []

    if match_name:
        parts.append(f"You are privately coaching {user_name} about their match with {match_name}.")
    else:
        parts.append(f"You are privately coaching {user_name}.")

    parts.append(format_profile(user_name, user_profile))
    if match_name:
        parts.append(format_profile(match_name, match_profile))

    lines = []
    for message in (conversation or [])[-30:]:
        sender = user_name if message.get("sender_id") == user_id else match_name
        lines.append(f"{sender}: {message.get('text', '')}")
    if lines:
        chat = "\n".join(lines)
        parts.append(f"=== THEIR CHAT MESSAGES ===\n{chat}\n=== END CHAT ===")

    parts.append(f'{user_name}\'s question (PRIVATE):\n"{question}"')

    return "\n".join(part for part in parts if part)


async def get_coach_response(
    user_id: str,
    user_name: str,
    question: str,
    match_name: Optional[str] = None,
    user_profile: Optional[dict] = None,
    match_profile: Optional[dict] = None,
    conversation: Optional[List[dict]] = None,
    coach_history: Optional[List[dict]] = None,
) -> str:
    """
    Answer a user's question to the coach.

    Args:
        user_id: The user asking
        user_name: Display name of the user
        question: The new question
        match_name: Display name of the match the question is about, if any
        user_profile: The user's profile fields
        match_profile: The match's profile fields
        conversation: Recent chat messages with the match, oldest first
        coach_history: Earlier questions and answers of this coaching session

    Returns:
        The coach's reply
    """
    # Last 10 turns of the coaching session
    history = [
        {"role": turn["role"], "content": turn["content"]}
        for turn in (coach_history or [])[-10:]
    ]

    prompt = build_coach_prompt(
        user_id=user_id,
        user_name=user_name,
        question=question,
        match_name=match_name,
        user_profile=user_profile,
        match_profile=match_profile,
        conversation=conversation,
    )

    return await call_llm(
        system_prompt=get_coach_system_prompt(user_name),
        user_prompt=prompt,
        history=history,
    )
