"""봇 자동응답 문장 생성기."""
import logging
import random

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

FALLBACK_REPLIES = [
    "Hey! I'm here 🙂",
    "I was thinking about you just now.",
    "Tell me more, I'm really curious.",
    "That sounds interesting, go on 🙂",
    "You make this chat more fun!",
]


class ReplyGenerator:
    def generate_reply(self, chat_id, text, history=None) -> str:
        raise NotImplementedError


class GeminiReplyGenerator(ReplyGenerator):
    URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

    def __init__(self, api_key=None, model=None, timeout=None):
        self.api_key = api_key or settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.timeout = timeout or settings.GEMINI_TIMEOUT

    def _contents(self, text, history):
        contents = []
        for role, content in history or []:
            contents.append({"role": "model" if role == "bot" else "user", "parts": [{"text": content}]})
        contents.append({"role": "user", "parts": [{"text": text}]})
        return contents

    def generate_reply(self, chat_id, text, history=None):
        if not self.api_key:
            logger.info(f"Gemini API key missing, using fallback reply for chat {chat_id}")
            return random.choice(FALLBACK_REPLIES)

        res = requests.post(
            self.URL.format(model=self.model),
            params={"key": self.api_key},
            json={"contents": self._contents(text, history)},
            timeout=self.timeout,
        )
        res.raise_for_status()
        data = res.json()
        try:
            reply = data["candidates"][0]["content"]["parts"][0]["text"].strip()
        except (KeyError, IndexError, TypeError):
            logger.warning(f"Unexpected Gemini response for chat {chat_id}: {str(data)[:300]}")
            reply = ""
        return reply or random.choice(FALLBACK_REPLIES)
