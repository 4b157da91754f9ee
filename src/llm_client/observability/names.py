# src/llm_client/observability/names.py

"""Standard metric names for llm-client observability.

Use these constants instead of hardcoded strings so dashboards stay stable.

Note: All duration metrics are in milliseconds by convention.
"""

# Duration (one sample per chat() call, retries and backoff included)
LLM_COMPLETION_DURATION = "llm_completion_duration"

# Counters
LLM_REQUESTS_TOTAL = "llm_requests_total"
LLM_ERRORS_TOTAL = "llm_errors_total"
LLM_RETRIES_TOTAL = "llm_retries_total"

# Counters (token usage, trusted from the server)
LLM_TOKENS_PROMPT = "llm_tokens_prompt"
LLM_TOKENS_COMPLETION = "llm_tokens_completion"
LLM_TOKENS_TOTAL = "llm_tokens_total"
