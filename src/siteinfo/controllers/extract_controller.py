# ============================================
# file: src/siteinfo/controllers/extract_controller.py
# ============================================
from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd
from tqdm.auto import tqdm

from siteinfo.managers.config_manager import config_manager
from siteinfo.model import LoaderSettings, SiteMetadata
from siteinfo.site_info import SiteInfo

logger = logging.getLogger(__name__)

COLUMNS = ["url", "title", "description", "keywords", "icon", "image", "error"]


class ExtractController:
    """
    Runs one independent SiteInfo per URL on a thread pool.
    Instances share no state, so the only coordination is collecting results.
    """

    def __init__(self, *, settings: Optional[LoaderSettings] = None, default_workers: Optional[int] = None) -> None:
        self.settings = settings or LoaderSettings.from_config()
        self.default_workers = default_workers or int(
            config_manager.get_nested("batch.workers", min(8, os.cpu_count() or 4))
        )

    def extract_one(self, url: str) -> SiteMetadata:
        return SiteInfo(url, settings=self.settings).extract()

    def extract_many(
            self,
            urls: Sequence[str],
            *,
            workers: Optional[int] = None,
            show_progress: bool = True,
    ) -> List[SiteMetadata]:
        """Extracts metadata for every URL; the result order matches the input order."""
        if not urls:
            return []

        n_workers = int(workers or self.default_workers)
        results: Dict[int, SiteMetadata] = {}
        start = time.perf_counter()

        with ThreadPoolExecutor(max_workers=n_workers) as pool:
            futures = {pool.submit(self.extract_one, url): idx for idx, url in enumerate(urls)}
            iterator = as_completed(futures)
            if show_progress:
                iterator = tqdm(iterator, total=len(futures), desc="Extracting", unit=" page")

            for fut in iterator:
                idx = futures[fut]
                try:
                    results[idx] = fut.result()
                except Exception as e:
                    logger.error("Failed to extract %s: %s", urls[idx], e, exc_info=True)
                    results[idx] = SiteMetadata(url=urls[idx], error=f"{type(e).__name__}: {e}")

        logger.info(
            "Extracted %d pages in %.2fs with %d workers.", len(urls), time.perf_counter() - start, n_workers
        )
        return [results[i] for i in range(len(urls))]

    @staticmethod
    def to_dataframe(results: Sequence[SiteMetadata]) -> pd.DataFrame:
        return pd.DataFrame([r.model_dump() for r in results], columns=COLUMNS)

    def export(self, results: Sequence[SiteMetadata], path: Path | str) -> Path:
        """Writes results as CSV or JSON, chosen by the file suffix."""
        out = Path(path)
        df = self.to_dataframe(results)
        if out.suffix.lower() == ".json":
            df.to_json(out, orient="records", force_ascii=False, indent=2)
        else:
            df.to_csv(out, index=False)
        logger.info("Exported %d rows to %s", len(df), out)
        return out
