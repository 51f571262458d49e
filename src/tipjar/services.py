"""Wire stores, model client, crawler and assembler from a Config.

Each collaborator has exactly one implementation, chosen here once at
startup; nothing downstream switches backends per request.
"""

from dataclasses import dataclass
from typing import Optional

from .assembler import TipAssembler
from .classifiers import build_classifiers
from .config import Config
from .crawler import PageCrawler
from .dates import RelativeOffsets
from .folder_registry import FolderRegistry
from .identity import IdentityResolver
from .llm import get_llm_provider
from .llm.base import LLMProvider
from .storage import FolderStore, JsonFolderStore, JsonTipStore, TipStore


@dataclass
class Services:
    """Everything a request handler or CLI command needs."""

    tips: TipStore
    folders: FolderStore
    registry: FolderRegistry
    assembler: TipAssembler
    crawler: Optional[PageCrawler]
    identity: IdentityResolver


def build_services(
    config: Config,
    llm: Optional[LLMProvider] = None,
    crawler: Optional[PageCrawler] = None,
    tip_store: Optional[TipStore] = None,
    folder_store: Optional[FolderStore] = None,
) -> Services:
    """Create the service graph; explicit arguments replace the defaults."""
    llm = llm or get_llm_provider(config)
    if crawler is None and config.crawling_enabled:
        crawler = PageCrawler(config.firecrawl_api_key, timeout=config.crawl_timeout)
    tips = tip_store or JsonTipStore(config.data_dir)
    folders = folder_store or JsonFolderStore(config.data_dir)
    registry = FolderRegistry(tips, folders)
    single, batch = build_classifiers(llm, config)
    assembler = TipAssembler(
        tips,
        registry,
        single,
        batch,
        crawler=crawler,
        offsets=RelativeOffsets(config.soon_days, config.later_days),
    )
    return Services(
        tips=tips,
        folders=folders,
        registry=registry,
        assembler=assembler,
        crawler=crawler,
        identity=IdentityResolver(config.api_tokens),
    )
