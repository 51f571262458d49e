"""Shared fixtures: call-counting fakes for the model client and crawler."""

import json
from datetime import datetime, timezone
from typing import Optional

import pytest

from tipjar.assembler import TipAssembler
from tipjar.classifiers import BatchTipClassifier, SingleTipClassifier
from tipjar.exceptions import ModelUnavailable
from tipjar.folder_registry import FolderRegistry
from tipjar.llm.base import LLMProvider
from tipjar.models import PageContent
from tipjar.storage import JsonFolderStore, JsonTipStore

# A Monday.
NOW = datetime(2024, 6, 10, 9, 30, tzinfo=timezone.utc)


class FakeLLM(LLMProvider):
    """Replies with queued strings (or raises queued exceptions), recording every call."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    @property
    def model(self) -> str:
        return "fake-model"

    @property
    def default_max_output_tokens(self) -> int:
        return 1000

    def generate(self, system_prompt, user_prompt, max_output_tokens=None, temperature=None):
        self.calls.append(
            {
                "system": system_prompt,
                "user": user_prompt,
                "max_output_tokens": max_output_tokens,
                "temperature": temperature,
            }
        )
        if not self.replies:
            raise AssertionError("FakeLLM called more times than expected")
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, (dict, list)):
            return json.dumps(reply)
        return reply


class DownLLM(FakeLLM):
    """Every call fails with a transport error."""

    def __init__(self):
        super().__init__(ModelUnavailable("connection refused"))


class FakeCrawler:
    def __init__(self, pages: Optional[dict] = None):
        self.pages = pages or {}
        self.calls = []

    def fetch(self, url: str) -> Optional[PageContent]:
        self.calls.append(url)
        return self.pages.get(url)


@pytest.fixture
def tip_store(tmp_path):
    return JsonTipStore(tmp_path / "data")


@pytest.fixture
def folder_store(tmp_path):
    return JsonFolderStore(tmp_path / "data")


@pytest.fixture
def registry(tip_store, folder_store):
    return FolderRegistry(tip_store, folder_store)


@pytest.fixture
def make_assembler(tip_store, registry):
    def _make(llm: LLMProvider, crawler=None) -> TipAssembler:
        return TipAssembler(
            tip_store,
            registry,
            SingleTipClassifier(llm),
            BatchTipClassifier(llm),
            crawler=crawler,
            clock=lambda: NOW,
        )

    return _make
