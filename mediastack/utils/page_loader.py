"""Run a page's independent backend calls in parallel, each with its own fallback."""

import copy
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, Tuple

Loader = Tuple[Callable[[], Any], Any]


def load_all(loaders: Dict[str, Loader], logger: logging.Logger, max_workers: int = 6) -> Dict[str, Any]:
    """
    Call every loader concurrently and collect the results by name.

    loaders maps a name to (callable, fallback). A loader that raises is
    logged and replaced by a copy of its fallback; the others are unaffected.
    A loader that returns None also gets its fallback.
    """
    results: Dict[str, Any] = {}
    if not loaders:
        return results

    with ThreadPoolExecutor(max_workers=min(max_workers, len(loaders))) as pool:
        futures = {pool.submit(fn): name for name, (fn, _) in loaders.items()}

        for future in as_completed(futures):
            name = futures[future]
            fallback = loaders[name][1]
            try:
                value = future.result()
            except Exception as e:
                logger.error(f"Failed to load {name}: {e}")
                value = None
            results[name] = copy.deepcopy(fallback) if value is None else value

    return results
