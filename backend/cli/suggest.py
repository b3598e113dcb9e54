"""CLI for trying category style suggestions from a terminal."""
import argparse
import asyncio
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from catstyle.core.config import get_settings  # noqa: E402
from catstyle.core.errors import SuggestionError  # noqa: E402
from catstyle.services.category_style_advisor import CategoryStyleAdvisor  # noqa: E402
from catstyle.services.provider_gateway import ProviderGateway  # noqa: E402
from catstyle.services.style_resolver import DeterministicStyleResolver  # noqa: E402
from catstyle.services.suggestion_client import SuggestionClient  # noqa: E402


def _print(payload):
    print(json.dumps(payload, ensure_ascii=False, indent=2))


async def _suggest(args):
    settings = get_settings()
    if args.local:
        return DeterministicStyleResolver().resolve(args.name)

    if args.endpoint:
        client = SuggestionClient(
            endpoint=args.endpoint,
            timeout_ms=settings.ai_proxy_timeout_ms,
        )
        try:
            return await client.suggest_category_style(args.name, model=args.model)
        finally:
            await client.aclose()

    advisor = CategoryStyleAdvisor.from_settings(settings)
    try:
        if args.model:
            return await advisor.client.suggest_category_style(args.name, model=args.model)
        return await advisor.suggest_style(args.name)
    finally:
        await advisor.close()


def cmd_suggest(args):
    """Resolve a style the way the app does (flags, gateway, local fallback)."""
    suggestion = asyncio.run(_suggest(args))
    _print(suggestion.model_dump(by_alias=True))
    return 0


async def _ask_gateway(args):
    gateway = ProviderGateway(get_settings())
    try:
        return await gateway.suggest(args.name, args.model)
    finally:
        await gateway.close()


def cmd_gateway(args):
    """Call the provider directly, without any fallback."""
    try:
        response = asyncio.run(_ask_gateway(args))
    except (SuggestionError, ValueError) as e:
        _print({"error": type(e).__name__, "message": str(e)})
        return 1
    _print(response.model_dump(exclude_none=True))
    return 0


def cmd_health(args):
    """Print the gateway health payload."""
    _print(ProviderGateway(get_settings()).health().model_dump(by_alias=True))
    return 0


def build_parser():
    p = argparse.ArgumentParser(prog="suggest")
    sub = p.add_subparsers(dest="cmd")
    s = sub.add_parser("suggest", help="Suggest a style for a category name")
    s.add_argument("name", help="Category name")
    s.add_argument("--local", action="store_true", help="Only use the local resolver")
    s.add_argument("--endpoint", help="Gateway URL (overrides AI_PROXY_URL)")
    s.add_argument("--model", help="Model identifier, e.g. openai/gpt-4o-mini")
    s.set_defaults(func=cmd_suggest)
    s = sub.add_parser("gateway", help="Ask the language model directly")
    s.add_argument("name", help="Category name")
    s.add_argument("--model", help="Model identifier, e.g. openai/gpt-4o-mini")
    s.set_defaults(func=cmd_gateway)
    s = sub.add_parser("health", help="Show gateway configuration status")
    s.set_defaults(func=cmd_health)
    return p


def main(argv=None):
    p = build_parser()
    args = p.parse_args(argv)
    if not hasattr(args, "func"):
        p.print_help()
        return 2
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
