#!/usr/bin/env python3
"""
Candidate Embedding Script

Generates resume embeddings for candidates so the chat assistant can answer
"similar to" questions and match pasted job descriptions.

Calls are sequential with a short pause between them to stay under the
embedding API rate limit. Every attempt is recorded in
embedding_generation_log.

Usage:
    # Embed every candidate with resume text
    python scripts/embed_candidates.py --all

    # Embed specific candidates
    python scripts/embed_candidates.py --ids <uuid> <uuid>

    # Show embedding coverage and spend
    python scripts/embed_candidates.py --stats

    # Try a semantic query
    python scripts/embed_candidates.py --search "react developer with aws"
"""

import asyncio
import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from recruitchat.config import get_settings
from recruitchat.database import async_session, init_db
from recruitchat.services.embeddings import EmbeddingClient
from recruitchat.services.semantic_search import SemanticSearchService
from recruitchat.services.store import RecruitmentStore

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

settings = get_settings()


async def show_stats(service: SemanticSearchService) -> None:
    stats = await service.get_embedding_stats()
    logger.info(f"Candidates embedded: {stats['total_candidates_embedded']}")
    logger.info(f"Jobs embedded: {stats['total_jobs_embedded']}")
    logger.info(f"Tokens used: {stats['total_tokens_used']}")
    logger.info(f"Total cost: ${stats['total_cost_usd']:.4f}")
    logger.info(f"Last generated: {stats['last_generated'] or 'never'}")


async def run_search(service: SemanticSearchService, query: str) -> None:
    results = await service.search_similar_candidates(query, limit=5)
    if not results:
        logger.info("No similar candidates found")
        return
    for i, candidate in enumerate(results, start=1):
        logger.info(f"{i}. {candidate['name']} ({candidate['similarity_score']}% match)")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Generate candidate embeddings")
    parser.add_argument("--all", action="store_true", help="Embed all candidates with resume text")
    parser.add_argument("--ids", nargs="+", help="Embed only these candidate ids")
    parser.add_argument("--stats", action="store_true", help="Show embedding statistics")
    parser.add_argument("--search", help="Run a semantic search query")
    parser.add_argument(
        "--delay-ms",
        type=int,
        default=settings.embedding_delay_ms,
        help="Pause between API calls",
    )

    args = parser.parse_args()

    if not settings.openai_api_key and not args.stats:
        logger.error("OPENAI_API_KEY is not set")
        sys.exit(1)

    await init_db()
    store = RecruitmentStore(async_session)
    service = SemanticSearchService(store, EmbeddingClient(settings), settings)

    if args.stats:
        await show_stats(service)

    elif args.search:
        await run_search(service, args.search)

    elif args.all or args.ids:
        summary = await service.embed_all_candidates(args.ids, delay_ms=args.delay_ms)
        logger.info(
            f"Done: {summary['success']}/{summary['total']} embedded, "
            f"{summary['failed']} failed, total cost ${summary['total_cost']:.4f}"
        )

    else:
        parser.print_help()


if __name__ == "__main__":
    asyncio.run(main())
