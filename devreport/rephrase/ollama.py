import asyncio
import logging
from openai import AsyncOpenAI, OpenAIError
from openai.types.chat import ChatCompletionUserMessageParam

from devreport.rephrase.base import TextRewriter

logger = logging.getLogger(__name__)

REPHRASE_PROMPT = (
    "Rephrase each bullet point below to be concise and professional using verbs. "
    "Keep the bullet point format (•). Return exactly one line per input, "
    "in the same order:\n\n"
)


class OllamaRephraser(TextRewriter):
    def __init__(self, *, openai_client: AsyncOpenAI, model: str, timeout: float = 60.0):
        self.client = openai_client
        self.model = model
        self.timeout = timeout

    def build_prompt(self, lines: list[str]) -> str:
        return REPHRASE_PROMPT + "\n".join(lines)

    async def rewrite(self, lines: list[str]) -> list[str]:
        if not lines:
            return lines

        try:
            completion = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        ChatCompletionUserMessageParam(
                            role="user", content=self.build_prompt(lines)
                        )
                    ],
                    stream=False,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Rephrasing timed out, using original achievements")
            return lines
        except OpenAIError as e:
            logger.warning(f"Rephrasing unavailable, using original achievements: {e}")
            return lines
        except Exception:
            logger.exception("Unexpected error while rephrasing, using original achievements")
            return lines

        try:
            content = (completion.choices[0].message.content or "").strip()
        except (AttributeError, IndexError, TypeError):
            logger.warning("Malformed rephrase response, using original achievements")
            return lines

        if not content:
            logger.warning("Rephrase returned empty content, using original achievements")
            return lines

        rephrased = [line.strip() for line in content.split("\n") if line.strip()]
        logger.info(f"Rephrased {len(rephrased)} achievements")
        return rephrased
