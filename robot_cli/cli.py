"""Command line surface for the robot build-tracking client."""

from __future__ import annotations

import argparse
import logging
import sys
from functools import partial
from typing import Any, Callable, Sequence

from robot_core.build import (
    BuildStore,
    BuildUploader,
    FileOutcome,
    StashUploader,
    Uploader,
    set_track,
    upload_files,
)
from robot_core.config import ServerSettings, load_server_settings
from robot_core.errors import RobotError
from robot_core.remote import RobotConnection, connect
from robot_core.search import CONTINUE, Query, Visit, compile_search
from robot_core.stash import StashStore
from robot_core.textformat import to_text

from .options import BuildUploadOptions, SearchOptions, TrackSetOptions, UploadOptions

CLI_VERSION = "0.1.0"

SearchRunner = Callable[[RobotConnection, Query, Callable[[Any], Visit]], None]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="robot",
        description="Register builds with the build server and query what it holds.",
    )
    parser.add_argument("--version", action="version", version=f"robot v{CLI_VERSION}")
    parser.add_argument("--server", help="build server url (default: config file or $ROBOT_SERVER)")
    parser.add_argument("--config", help="path to config.toml (default: user config dir or $ROBOT_CONFIG)")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = False

    _add_upload_commands(subparsers)
    _add_search_commands(subparsers)
    _add_set_commands(subparsers)
    return parser


def _add_upload_commands(subparsers: Any) -> None:
    upload = subparsers.add_parser("upload", help="upload files to the server")
    upload_sub = upload.add_subparsers(dest="upload_cmd", required=True)

    build = upload_sub.add_parser("build", help="upload a build to the server")
    build.add_argument("files", nargs="+", help="build files to upload")
    build.add_argument("--tag", help="the optional build tag")
    build.add_argument("--cl", help="the build CL, will be guessed if not set")
    build.add_argument("--branch", help="the build branch, will be guessed if not set")
    build.add_argument("--description", help="an optional build description")
    build.add_argument("--uploader", help="the uploading entity, will be guessed if not set")
    build.set_defaults(
        func=partial(_handle_upload, _build_uploader),
        options_type=BuildUploadOptions,
        label="upload",
    )

    stash = upload_sub.add_parser("stash", help="upload a file to the stash")
    stash.add_argument("files", nargs="+", help="files to stash")
    stash.set_defaults(
        func=partial(_handle_upload, _stash_uploader),
        options_type=UploadOptions,
        label="upload",
    )


def _add_search_commands(subparsers: Any) -> None:
    search = subparsers.add_parser("search", help="list entities held by the server")
    search_sub = search.add_subparsers(dest="search_cmd", required=True)

    commands: Sequence[tuple[str, str, SearchRunner]] = (
        ("artifact", "list build artifacts in the server", _search_artifacts),
        ("package", "list build packages in the server", _search_packages),
        ("track", "list build tracks in the server", _search_tracks),
        ("stash", "list entries in the stash", _search_stash),
    )
    for name, help_text, runner in commands:
        cmd = search_sub.add_parser(name, help=help_text)
        cmd.add_argument("query", nargs="*", help="search expression (default: everything)")
        cmd.set_defaults(
            func=partial(_handle_search, runner),
            options_type=SearchOptions,
            label="search",
        )


def _add_set_commands(subparsers: Any) -> None:
    set_cmd = subparsers.add_parser("set", help="change values held by the server")
    set_sub = set_cmd.add_subparsers(dest="set_cmd", required=True)

    track = set_sub.add_parser("track", help="set values on a track")
    track.add_argument("track", nargs="?", help="id or name of the track to update")
    track.add_argument("--name", help="the new name for the track")
    track.add_argument("--description", help="a description of the track")
    track.add_argument("--package", help="the id of the package at the head of the track")
    track.set_defaults(func=_handle_set_track, options_type=TrackSetOptions, label="set")


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 0

    _configure_logging(bool(args.verbose))
    try:
        settings = load_server_settings(args.config, address=args.server)
        options = args.options_type.from_namespace(args)
        return func(options, settings)
    except RobotError as exc:
        print(f"[robot:{args.label}] error: {exc}", file=sys.stderr)
        return 1


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _build_uploader(options: BuildUploadOptions) -> Uploader:
    return BuildUploader(options.flags)


def _stash_uploader(_: UploadOptions) -> Uploader:
    return StashUploader()


def _handle_upload(
    make_uploader: Callable[[Any], Uploader],
    options: UploadOptions,
    settings: ServerSettings,
) -> int:
    with connect(settings) as connection:
        outcomes = upload_files(connection, make_uploader(options), options.files)

    failed = 0
    for outcome in outcomes:
        if outcome.ok:
            print(f"[robot:upload] {_describe(outcome)}")
        else:
            failed += 1
            print(f"[robot:upload] {outcome.path} error: {outcome.error}", file=sys.stderr)
    return 1 if failed else 0


def _describe(outcome: FileOutcome) -> str:
    result = outcome.result
    assert result is not None
    if result.set_id is None:
        return f"{outcome.path} stashed as {result.stash_id}"
    if result.merged:
        return f"{outcome.path} merged with build set {result.set_id}"
    return f"{outcome.path} new build set {result.set_id}"


def _print_entity(entity: Any) -> Visit:
    print(to_text(entity))
    return CONTINUE


def _search_artifacts(connection: RobotConnection, query: Query, visitor: Callable[[Any], Visit]) -> None:
    BuildStore(connection).search_artifacts(query, visitor)


def _search_packages(connection: RobotConnection, query: Query, visitor: Callable[[Any], Visit]) -> None:
    BuildStore(connection).search_packages(query, visitor)


def _search_tracks(connection: RobotConnection, query: Query, visitor: Callable[[Any], Visit]) -> None:
    BuildStore(connection).search_tracks(query, visitor)


def _search_stash(connection: RobotConnection, query: Query, visitor: Callable[[Any], Visit]) -> None:
    StashStore(connection).search(query, visitor)


def _handle_search(runner: SearchRunner, options: SearchOptions, settings: ServerSettings) -> int:
    query = compile_search(options.expression)
    with connect(settings) as connection:
        runner(connection, query, _print_entity)
    return 0


def _handle_set_track(options: TrackSetOptions, settings: ServerSettings) -> int:
    with connect(settings) as connection:
        track = set_track(BuildStore(connection), options.token, options.update)
    print(to_text(track), end="")
    return 0
