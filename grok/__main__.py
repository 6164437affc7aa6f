"""CLI interface for grokdb.

Usage:
    python -m grok init                          Create the database tables
    python -m grok deck "Spanish" --parent 1     Create a (nested) deck
    python -m grok card 2 "hola" --back "hello"  Add a card to a deck
    python -m grok next --deck 2                 Show the card to review next
    python -m grok grade 5 success --deck 2      Record a review outcome
    python -m grok skip 5 --deck 2               Skip a card without grading it
    python -m grok ancestors 3                   Show a deck's ancestor chain
"""

import argparse
import asyncio
import logging

from grokdb.catalog import CardRepository, DeckRepository
from grokdb.config import settings
from grokdb.database import Store
from grokdb.errors import GrokError
from grokdb.hierarchy import DeckHierarchy
from grokdb.review import Outcome, ReviewableDeck, ReviewableStash, ReviewSelector, ScoreTracker, ScoreUpdate

logger = logging.getLogger(__name__)


async def ensure_db(store: Store) -> None:
    """Create tables if they don't exist."""
    await store.create_all()


async def cmd_init(store: Store, args: argparse.Namespace) -> None:
    print(f"  Database ready at {settings.database_url}")


async def cmd_deck(store: Store, args: argparse.Namespace) -> None:
    deck = await DeckRepository(store).create(args.name, args.description, parent=args.parent)
    print(f"  Created deck {deck.id}: {deck.name}")


async def cmd_card(store: Store, args: argparse.Namespace) -> None:
    card = await CardRepository(store).create(
        args.deck, args.title, description=args.description, front=args.front, back=args.back
    )
    print(f"  Created card {card.id} in deck {args.deck}")


async def cmd_next(store: Store, args: argparse.Namespace) -> None:
    selection = ReviewableStash(args.stash) if args.stash is not None else ReviewableDeck(args.deck)
    card_id = await ReviewSelector(store).get_review_card(selection)
    if card_id is None:
        print("  No card to review")
        return
    card = await CardRepository(store).get(card_id)
    print(f"  [{card.id}] {card.title}")
    if card.front:
        print(f"  {card.front}")


async def cmd_grade(store: Store, args: argparse.Namespace) -> None:
    update = ScoreUpdate(
        outcome=Outcome(args.outcome),
        changelog=args.note,
        deck=args.deck,
        stash=args.stash,
    )
    score = await ScoreTracker(store).review_card(args.card, update)
    print(f"  Card {args.card}: {score.success} success / {score.fail} fail over {score.times_reviewed} review(s)")


async def cmd_skip(store: Store, args: argparse.Namespace) -> None:
    update = ScoreUpdate(skip=True, deck=args.deck, stash=args.stash)
    await ScoreTracker(store).review_card(args.card, update)
    print(f"  Skipped card {args.card}")


async def cmd_ancestors(store: Store, args: argparse.Namespace) -> None:
    names = await DeckHierarchy(store).ancestors_by_name(args.deck)
    print("  " + (" > ".join(reversed(names)) if names else "(root deck)"))


async def run(args: argparse.Namespace) -> None:
    cmd_map = {
        "init": cmd_init,
        "deck": cmd_deck,
        "card": cmd_card,
        "next": cmd_next,
        "grade": cmd_grade,
        "skip": cmd_skip,
        "ancestors": cmd_ancestors,
    }
    store = Store.from_url(settings.database_url)
    try:
        await ensure_db(store)
        await cmd_map[args.command](store, args)
    except (GrokError, ValueError) as exc:
        print(f"  Error: {exc}")
    finally:
        await store.dispose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="grok", description="Study cards with nested decks and stashes")
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init", help="Create the database tables")

    deck_parser = subparsers.add_parser("deck", help="Create a deck")
    deck_parser.add_argument("name")
    deck_parser.add_argument("-d", "--description", default="")
    deck_parser.add_argument("-p", "--parent", type=int, default=None, help="Parent deck id")

    card_parser = subparsers.add_parser("card", help="Add a card to a deck")
    card_parser.add_argument("deck", type=int)
    card_parser.add_argument("title")
    card_parser.add_argument("-d", "--description", default="")
    card_parser.add_argument("--front", default="")
    card_parser.add_argument("--back", default="")

    next_parser = subparsers.add_parser("next", help="Show the next card to review")
    target = next_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--deck", type=int)
    target.add_argument("--stash", type=int)

    grade_parser = subparsers.add_parser("grade", help="Record a review outcome")
    grade_parser.add_argument("card", type=int)
    grade_parser.add_argument("outcome", choices=[o.value for o in Outcome])
    grade_parser.add_argument("--note", default=None, help="Append a note to the card's changelog")
    grade_parser.add_argument("--deck", type=int, default=None)
    grade_parser.add_argument("--stash", type=int, default=None)

    skip_parser = subparsers.add_parser("skip", help="Skip a card without grading it")
    skip_parser.add_argument("card", type=int)
    skip_parser.add_argument("--deck", type=int, default=None)
    skip_parser.add_argument("--stash", type=int, default=None)

    ancestors_parser = subparsers.add_parser("ancestors", help="Show a deck's ancestors")
    ancestors_parser.add_argument("deck", type=int)

    return parser


def main() -> None:
    """Entry point for the grok CLI."""
    parser = build_parser()
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if not args.command:
        parser.print_help()
        return

    asyncio.run(run(args))


if __name__ == "__main__":
    main()
