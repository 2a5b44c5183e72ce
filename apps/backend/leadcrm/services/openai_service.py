from typing import AsyncIterator, Dict, List, Optional, Protocol

from openai import AsyncOpenAI

from leadcrm.config import settings
from leadcrm.schemas import PROGRAMS

_catalog = "\n".join(f"- {p}" for p in PROGRAMS)

SYSTEM_PROMPT = f"""You are the Iron Lady Program Advisor - a warm, knowledgeable guide who helps women professionals choose the right leadership program for their career stage.

**Your Goal:**
Understand the visitor's current role, experience and ambitions, then recommend ONE program from the catalog below and explain why it fits.

**Program Catalog:**
{_catalog}

**Communication Style:**
- Be encouraging, concise and specific (3-5 sentences per reply)
- Ask at most one clarifying question at a time
- Use the visitor's name once they share it

**Guidance:**
- Early-career managers moving into their first leadership role -> Transition to Leadership Bootcamp or Leadership Essentials Program (LEP)
- Mid/senior leaders aiming for a step change in income or influence -> 1-Crore Club or Master Business Warfare (MBW)
- Senior executives targeting board positions -> 100 Board Members Program
- Anyone exploring -> Leadership Masterclass
- Organisations asking for team training -> Corporate Custom Program

**Important Rules:**
1. Only recommend programs from the catalog
2. Never quote prices or dates; offer to connect them with the admissions team instead
3. Stay on topic; gently steer off-topic questions back to their leadership goals"""


class CompletionSource(Protocol):
    def stream(self, messages: List[Dict[str, str]]) -> AsyncIterator[str]:
        """Yield reply text deltas in arrival order."""
        ...


class OpenAICompletionSource:
    """Streams chat completions from an OpenAI-compatible endpoint."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self.client = client or AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
            timeout=settings.OPENAI_TIMEOUT_SECONDS,
            max_retries=0,
        )
        self.model = model or settings.OPENAI_MODEL

    async def stream(self, messages: List[Dict[str, str]]) -> AsyncIterator[str]:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "system", "content": SYSTEM_PROMPT}, *messages],
            max_completion_tokens=settings.OPENAI_MAX_TOKENS,
            stream=True,
        )
        async for chunk in response:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta
            if delta.content:
                yield delta.content


_default_source: Optional[OpenAICompletionSource] = None


def get_completion_source() -> CompletionSource:
    """FastAPI dependency; the client is created lazily so tests never need a key."""
    global _default_source
    if _default_source is None:
        _default_source = OpenAICompletionSource()
    return _default_source
