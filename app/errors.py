"""Exceptions raised by the agent loop and the retry policy."""


class MaxRetriesExceededError(Exception):
    """A rate-limited operation failed on every allowed attempt."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Max retries exceeded after {attempts} attempts")


class AgentError(Exception):
    """A conversation turn could not be completed."""


class AgentRateLimitedError(AgentError):
    """The model provider kept rate limiting the turn."""

    def __init__(self):
        super().__init__("Service temporarily unavailable due to rate limits. Please try again in a minute.")


class AgentAuthenticationError(AgentError):
    """The model provider rejected our credentials."""

    def __init__(self):
        super().__init__("Authentication failed. Please check your API configuration.")


class TurnBudgetExceededError(AgentError):
    """The turn kept calling tools past the allowed number of steps."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Agent failed: exceeded the turn budget of {limit} steps without a final answer")
