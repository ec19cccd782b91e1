import argparse
import logging
import sys
from pathlib import Path

from posterlink import __version__, config
from posterlink.client import (AccessGate, ApiError, ExportPipeline, ExportStatus, GateDecision,
                               PosterLinkClient, PosterSession, poster_to_html)
from posterlink.errors import PosterLinkError

logger = logging.getLogger("posterlink")


def _client(args) -> PosterLinkClient:
    return PosterLinkClient(base_url=args.api, token=args.token or None)


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("posterlink.app:app", host=args.host, port=args.port)
    return 0


def cmd_register(args) -> int:
    print(_client(args).register(args.name, args.email, args.password))
    return 0


def cmd_login(args) -> int:
    client = _client(args)
    user = client.login(args.email, args.password)
    logger.info("Signed in as %s%s", user.get("name"), " (premium)" if user.get("isPremium") else "")
    print(client.token)
    return 0


def cmd_upgrade(args) -> int:
    user = _client(args).upgrade_to_premium()
    print(f"{user.get('email')} is now premium")
    return 0


def cmd_posters(args) -> int:
    for url in _client(args).get_posters():
        print(url)
    return 0


def cmd_generate(args) -> int:
    client = _client(args)
    session = PosterSession(client)
    poster = session.generate(args.url)
    print(f"Title:  {poster.title}")
    print(f"Colors: {' '.join(poster.swatches)}")

    for _ in range(args.remix):
        poster = session.remix()
        print(f"Remix:  {' '.join(poster.swatches)}")

    if args.html:
        Path(args.html).write_text(poster_to_html(poster), encoding="utf-8")
        print(f"HTML written to {args.html}")

    if not args.export:
        return 0

    gate = AccessGate(client, ExportPipeline(client, args.export))
    outcome = gate.upgrade_and_export(session.current) if args.upgrade else gate.request_export(session.current)
    if outcome.decision is GateDecision.UPGRADE_REQUIRED:
        print("Exporting is a premium feature. Re-run with --upgrade to unlock it.", file=sys.stderr)
        return 2

    print(outcome.result.message)
    return 0 if outcome.result.status is ExportStatus.COMPLETE else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="posterlink", description="Turn a YouTube link into a poster")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--api", default=config.API_URL, help="API base URL (default: %(default)s)")
    parser.add_argument("--token", default=config.API_TOKEN, help="bearer token (default: $POSTERLINK_TOKEN)")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("serve", help="run the API server")
    sp.add_argument("--host", default=config.API_HOST)
    sp.add_argument("--port", type=int, default=config.API_PORT)
    sp.set_defaults(func=cmd_serve)

    sp = sub.add_parser("register", help="create an account")
    sp.add_argument("name")
    sp.add_argument("email")
    sp.add_argument("password")
    sp.set_defaults(func=cmd_register)

    sp = sub.add_parser("login", help="sign in and print a token")
    sp.add_argument("email")
    sp.add_argument("password")
    sp.set_defaults(func=cmd_login)

    sp = sub.add_parser("generate", help="generate a poster from a YouTube URL")
    sp.add_argument("url")
    sp.add_argument("--remix", type=int, default=0, metavar="N", help="reshuffle the palette N times")
    sp.add_argument("--html", metavar="PATH", help="write the rendered poster as HTML")
    sp.add_argument("--export", metavar="DIR", help="save the PNG to DIR and upload it (premium)")
    sp.add_argument("--upgrade", action="store_true", help="upgrade to premium before exporting")
    sp.set_defaults(func=cmd_generate)

    sp = sub.add_parser("upgrade", help="upgrade the account to premium")
    sp.set_defaults(func=cmd_upgrade)

    sp = sub.add_parser("posters", help="list uploaded posters (premium)")
    sp.set_defaults(func=cmd_posters)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s")
    try:
        return args.func(args)
    except ApiError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except (PosterLinkError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
