"""Command-line entry point for the Blobby gameplay core."""

import argparse
import logging
import random
import sys
from collections import Counter
from pathlib import Path
from typing import List, Optional

from blobby.core.generator import LEVEL_COUNT, build_grid
from blobby.core.progress import SaveStore
from blobby.core.state import new_game
from blobby.core.tiers import default_tier_table


def configure_logging(verbose: bool = False) -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def check_generation(seed: int, count: int = LEVEL_COUNT) -> Counter:
    """Generate every level once and count how far each had to be repaired."""
    rng = random.Random(seed)
    tiers = default_tier_table()
    repairs: Counter = Counter()
    for level_id in range(1, count + 1):
        _, _, _, report = build_grid(level_id, rng, tiers)
        repairs[report.tier.name] += 1
    return repairs


def run(argv: Optional[List[str]] = None) -> None:
    """Check level generation, then create or load the save file."""
    parser = argparse.ArgumentParser(prog="blobby", description=__doc__)
    parser.add_argument("--seed", type=int, default=None, help="seed for level generation")
    parser.add_argument("--save", type=Path, default=None, help="save file (default ~/.blobby/save.json)")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    seed = args.seed if args.seed is not None else random.randrange(2**32)

    repairs = check_generation(seed)
    logging.info("Generated %d levels with seed %d: %s", sum(repairs.values()), seed, dict(repairs))
    if repairs["CLEARED"]:
        logging.error("%d level(s) needed every obstacle cleared", repairs["CLEARED"])

    store = SaveStore(args.save)
    state = store.load()
    if state is None:
        state = new_game(rng=random.Random(seed))
        logging.info("Started a new game")
    else:
        logging.info("Loaded save from %s", store.path)
    store.save(state)

    logging.info(
        "Coins %d, lives %d, hints %d, %d/%d levels completed",
        state.coins,
        state.lives,
        state.hints,
        state.levels.completed_count(),
        len(state.levels),
    )
    sys.exit(0)
