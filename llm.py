"""
Unified LLM caller. All model API calls go through here.
ModelClient wraps one configured model behind complete() / health_check().
Rate-limit (429) retries are configurable; everything else fails fast.
"""

import time

import requests

from config import LLM_CONFIGS, MODEL_ATTEMPTS, MODEL_MAX_TOKENS, MODEL_TIMEOUT, get_api_key
from errors import ConfigurationError, ModelUnavailable, TransportError

HEALTH_PROMPT = "Hello, respond with just one word to confirm you're working."


def call(provider, model, prompt, api_key, max_tokens=MODEL_MAX_TOKENS,
         timeout=MODEL_TIMEOUT, attempts=MODEL_ATTEMPTS):
    """One model round-trip, retrying only on rate limits. Returns text."""
    attempts = max(1, attempts)
    for attempt in range(attempts):
        try:
            return _call_once(provider, model, prompt, api_key, max_tokens, timeout)
        except requests.exceptions.HTTPError as e:
            code = e.response.status_code if e.response is not None else "unknown"
            if code == 429 and attempt + 1 < attempts:
                wait = (attempt + 1) * 8
                print("    ... rate limited, waiting {}s (attempt {}/{})".format(
                    wait, attempt + 1, attempts))
                time.sleep(wait)
                continue
            raise TransportError("{}/{}: HTTP {}".format(provider, model, code)) from e
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise ModelUnavailable("{}/{}: {}".format(provider, model, str(e)[:100])) from e
        except requests.exceptions.RequestException as e:
            raise TransportError("{}/{}: {}".format(provider, model, str(e)[:100])) from e
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise TransportError("{}/{}: unexpected payload ({})".format(
                provider, model, str(e)[:100])) from e
    raise TransportError("{}/{}: rate limited".format(provider, model))


def _call_once(provider, model, prompt, api_key, max_tokens, timeout):
    if provider == "google":
        url = "https://generativelanguage.googleapis.com/v1beta/models/{}:generateContent".format(model)
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"maxOutputTokens": max_tokens, "temperature": 0.2}
        }
        resp = requests.post(url, params={"key": api_key}, json=payload, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
        candidate = data["candidates"][0]
        if candidate.get("finishReason", "") == "MAX_TOKENS":
            print("    WARNING: Gemini hit max tokens ({})".format(max_tokens))
        parts = candidate["content"]["parts"]
        return "\n".join(p["text"] for p in parts if "text" in p)

    elif provider == "openai":
        url = "https://api.openai.com/v1/chat/completions"
        headers = {"Authorization": "Bearer " + api_key, "Content-Type": "application/json"}
        payload = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens, "temperature": 0.2
        }
        resp = requests.post(url, headers=headers, json=payload, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
        if data["choices"][0].get("finish_reason", "") == "length":
            print("    WARNING: ChatGPT hit max tokens ({})".format(max_tokens))
        return data["choices"][0]["message"]["content"]

    elif provider == "anthropic":
        url = "https://api.anthropic.com/v1/messages"
        headers = {
            "x-api-key": api_key, "content-type": "application/json",
            "anthropic-version": "2023-06-01"
        }
        payload = {
            "model": model, "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}]
        }
        resp = requests.post(url, headers=headers, json=payload, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
        if data.get("stop_reason") == "max_tokens":
            print("    WARNING: Claude hit max tokens ({})".format(max_tokens))
        return data["content"][0]["text"]

    raise ValueError("unknown provider: {}".format(provider))


class ModelClient:
    """Generative model behind a single complete(prompt) -> text call."""

    def __init__(self, llm_id, api_key=None, timeout=MODEL_TIMEOUT, attempts=MODEL_ATTEMPTS,
                 max_tokens=MODEL_MAX_TOKENS):
        config = LLM_CONFIGS[llm_id]
        self.llm_id = llm_id
        self.label = config["label"]
        self.provider = config["provider"]
        self.model = config["model"]
        self.api_key = api_key or get_api_key(config["env_key"], config.get("alt_env_key"))
        if not self.api_key:
            raise ConfigurationError(self.label)
        self.timeout = timeout
        self.attempts = attempts
        self.max_tokens = max_tokens

    def complete(self, prompt):
        text = call(self.provider, self.model, prompt, self.api_key,
                    self.max_tokens, self.timeout, self.attempts)
        return text or ""

    def health_check(self):
        """True if a trivial prompt gets a non-empty reply. Never raises."""
        try:
            return bool(self.probe().strip())
        except Exception as e:
            print("  X {} health check: {}".format(self.label, str(e)[:100]))
            return False

    def probe(self):
        """Raw reply to the health prompt; transport errors propagate."""
        return call(self.provider, self.model, HEALTH_PROMPT, self.api_key,
                    50, self.timeout, 1) or ""
