"""Conversation service: message validation and thread management around the agent."""

import time

import tiktoken

from app.graphs.conversation import InventoryAgent
from app.utils.logging import get_logger

logger = get_logger(__name__)


def load_tokenizer() -> tiktoken.Encoding | None:
    """Load the tokenizer used to estimate message size, if available."""
    try:
        # Close approximation for Claude
        return tiktoken.encoding_for_model("gpt-4")
    except Exception as e:
        logger.warning(f"Tokenizer unavailable, falling back to character estimate: {e}")
        return None


def new_thread_id() -> str:
    """Thread identifier for a new conversation: the current time in milliseconds."""
    return str(time.time_ns() // 1_000_000)


class ConversationService:
    """Entry point for chat turns coming from the HTTP layer."""

    def __init__(
        self,
        agent: InventoryAgent,
        max_message_tokens: int = 1000,
        tokenizer: tiktoken.Encoding | None = None,
    ):
        """Initialize conversation service.

        Args:
            agent: Agent that runs the turns
            max_message_tokens: Largest accepted user message
            tokenizer: Token counter; character-based estimate when None
        """
        self.agent = agent
        self.max_message_tokens = max_message_tokens
        self.tokenizer = tokenizer

    async def start_conversation(self, message: str) -> tuple[str, str]:
        """Open a new thread with the first message.

        Returns:
            The new thread id and the assistant's response

        Raises:
            ValueError: If the message is empty or too long
        """
        self.validate_message(message)
        thread_id = new_thread_id()
        logger.info(f"Starting conversation {thread_id}")
        response = await self.agent.run(message, thread_id)
        return thread_id, response

    async def continue_conversation(self, thread_id: str, message: str) -> str:
        """Send a follow-up message on an existing thread.

        Raises:
            ValueError: If the thread id is empty or the message is empty or too long
        """
        if not thread_id or not thread_id.strip():
            raise ValueError("Thread id must not be empty.")

        self.validate_message(message)
        return await self.agent.run(message, thread_id)

    def estimate_tokens(self, message: str) -> int:
        """Estimate token count for a single message."""
        try:
            return len(self.tokenizer.encode(message)) if self.tokenizer else len(message) // 4
        except Exception:
            # Fallback: roughly 4 characters per token
            return len(message) // 4

    def validate_message(self, message: str) -> None:
        """Validate a user message before it reaches the model.

        Raises:
            ValueError: If the message is blank or exceeds the token limit
        """
        if not message or not message.strip():
            raise ValueError("Message must not be empty.")

        token_count = self.estimate_tokens(message)
        if token_count > self.max_message_tokens:
            raise ValueError(
                f"Your message is too long. Please keep messages under {self.max_message_tokens} tokens."
            )
