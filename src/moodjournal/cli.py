from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from ._util import _as_local, _fmt_time, _now_local
from .catalog import CatalogKind, SkinPackDescriptor
from .errors import MoodJournalError, NotFoundError, ValidationError
from .export import backup_report, data_summary, export_json, entries_to_csv, write_csv
from .models import Activity, ActivityCategory, EntryDraft, MoodEntry
from .paths import ENV_VAR, resolve_data_dir
from .safety import assert_safe_data_dir
from .stats import (
    Period,
    active_days,
    activity_stats,
    aggregate,
    aligned_trend_points,
    filter_by_period,
    mood_range,
    period_start,
    sparkline,
    stability,
    stability_label,
    trend_points,
)
from .timeparse import parse_ts
from .workspace import Workspace

logger = logging.getLogger(__name__)


# -------------------------
# Parsing helpers
# -------------------------

def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parse_ts(value)
    except ValueError as e:
        raise SystemExit(str(e)) from e


def _parse_names(raw: str | None) -> list[str]:
    """Comma-separated names (、 and ， accepted too), deduplicated, order kept."""
    if not raw:
        return []
    for sep in ("、", "，"):
        raw = raw.replace(sep, ",")
    seen = set()
    out: list[str] = []
    for chunk in raw.split(","):
        c = chunk.strip()
        if not c or c in seen:
            continue
        seen.add(c)
        out.append(c)
    return out


def _resolve_entry_id(ws: Workspace, prefix: str) -> str:
    matches = [e.id for e in ws.journal.list() if e.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise NotFoundError(f"no entry with id {prefix!r}")
    raise ValidationError(f"id prefix {prefix!r} is ambiguous ({len(matches)} entries)")


def _activities_from_names(ws: Workspace, raw: str | None) -> tuple[Activity, ...]:
    return tuple(ws.activities.find_by_name(n) for n in _parse_names(raw))


# -------------------------
# Print blocks
# -------------------------

def _entry_line(ws: Workspace, e: MoodEntry) -> str:
    dt = _as_local(e.occurred_at)
    line = (
        f"{e.id[:8]}  {dt.date().isoformat()} {_fmt_time(dt)} — "
        f"{ws.entitlements.mood_display(e.mood_level)} {e.mood_level}/5 {e.mood_description}"
    )
    if e.activities:
        line += f" [{', '.join(a.name for a in e.activities)}]"
    if e.note:
        line += f" ({e.note})"
    if e.audio_ref:
        line += " 🎙️"
    if e.image_ref:
        line += " 📷"
    return line


def _print_entry_block(ws: Workspace, e: MoodEntry) -> None:
    dt = _as_local(e.occurred_at)
    print("```")
    print("📒 心情日记")
    print(f"- 🆔 ID: {e.id}")
    print(f"- 📅 Date: {dt.date().isoformat()}")
    print(f"- 🕒 Time: {_fmt_time(dt)}")
    print(f"- {ws.entitlements.mood_display(e.mood_level)} Mood (1–5): {e.mood_level} {e.mood_description}")
    if e.activities:
        print(f"- 🏷️ Activities: {', '.join(a.name for a in e.activities)}")
    if e.note:
        print(f"- 📝 Note: {e.note}")
    if e.audio_ref:
        print(f"- 🎙️ Audio: {e.audio_ref} ({ws.media.size_of(e.audio_ref)})")
    if e.image_ref:
        print(f"- 📷 Image: {e.image_ref} ({ws.media.size_of(e.image_ref)})")
    print("```")


def _discard_media(ws: Workspace, refs: list[str]) -> None:
    for ref in refs:
        try:
            ws.media.delete(ref)
        except MoodJournalError as e:
            logger.warning("could not remove unused media %s: %s", ref, e)


def _write_or_print(text: str, out: str | None) -> None:
    if not out:
        sys.stdout.write(text)
        return
    out_path = Path(out).expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(text, encoding="utf-8")
    print(f"📄 Wrote {out_path}")


# -------------------------
# ENTRY commands
# -------------------------

def cmd_entry_add(args: argparse.Namespace) -> None:
    ws = args.workspace
    activities = _activities_from_names(ws, args.activities)
    occurred_at = _parse_time(args.time)

    saved: list[str] = []
    try:
        audio_ref = ws.media.import_file(Path(args.audio), "audio") if args.audio else None
        if audio_ref:
            saved.append(audio_ref)
        image_ref = ws.media.import_file(Path(args.image), "image") if args.image else None
        if image_ref:
            saved.append(image_ref)

        entry_id = ws.journal.create(
            EntryDraft(
                mood_level=args.mood,
                occurred_at=occurred_at,
                activities=activities,
                note=args.note or None,
                audio_ref=audio_ref,
                image_ref=image_ref,
            )
        )
    except MoodJournalError:
        _discard_media(ws, saved)
        raise

    entry = ws.journal.get(entry_id)
    if args.format == "block":
        _print_entry_block(ws, entry)
    else:
        print(f"🙂 Logged mood {entry.mood_level}/5 ({entry.mood_description}) @ {entry.occurred_at.isoformat(timespec='seconds')}")
        print(f"↳ id {entry.id}")


def cmd_entry_list(args: argparse.Namespace) -> None:
    ws = args.workspace
    entries = ws.journal.list()

    if not entries:
        print("No mood entries yet.")
        return

    if args.format == "block":
        for e in entries[: args.limit]:
            _print_entry_block(ws, e)
        return

    print("=== Mood Journal (newest first) ===")
    for e in entries[: args.limit]:
        print(_entry_line(ws, e))


def cmd_entry_show(args: argparse.Namespace) -> None:
    ws = args.workspace
    _print_entry_block(ws, ws.journal.get(_resolve_entry_id(ws, args.id)))


def cmd_entry_edit(args: argparse.Namespace) -> None:
    ws = args.workspace
    entry_id = _resolve_entry_id(ws, args.id)
    old = ws.journal.get(entry_id)

    if args.image and args.drop_image:
        raise SystemExit("--image and --drop-image are mutually exclusive")
    if args.audio and args.drop_audio:
        raise SystemExit("--audio and --drop-audio are mutually exclusive")

    activities = old.activities if args.activities is None else _activities_from_names(ws, args.activities)
    occurred_at = _parse_time(args.time) or old.occurred_at

    # new files first; superseded files only go once the entry no longer points at them
    saved: list[str] = []
    try:
        audio_ref = old.audio_ref
        if args.audio:
            audio_ref = ws.media.import_file(Path(args.audio), "audio")
            saved.append(audio_ref)
        elif args.drop_audio:
            audio_ref = None

        image_ref = old.image_ref
        if args.image:
            image_ref = ws.media.import_file(Path(args.image), "image")
            saved.append(image_ref)
        elif args.drop_image:
            image_ref = None

        ws.journal.update(
            entry_id,
            EntryDraft(
                mood_level=args.mood if args.mood is not None else old.mood_level,
                occurred_at=occurred_at,
                activities=activities,
                note=old.note if args.note is None else (args.note or None),
                audio_ref=audio_ref,
                image_ref=image_ref,
            ),
        )
    except MoodJournalError:
        _discard_media(ws, saved)
        raise

    for old_ref, new_ref in ((old.audio_ref, audio_ref), (old.image_ref, image_ref)):
        if old_ref and old_ref != new_ref:
            try:
                ws.media.delete(old_ref)
            except MoodJournalError as e:
                logger.warning("could not delete superseded media %s: %s", old_ref, e)

    print(f"✏️ Updated entry {entry_id}")


def cmd_entry_delete(args: argparse.Namespace) -> None:
    ws = args.workspace
    entry_id = _resolve_entry_id(ws, args.id)
    ws.journal.delete(entry_id)
    print(f"🗑️ Deleted entry {entry_id}")


# -------------------------
# STATS commands
# -------------------------

def cmd_stats(args: argparse.Namespace) -> None:
    ws = args.workspace
    period = Period(args.period)
    now = _now_local()
    window = filter_by_period(ws.journal.list(), period, now)

    if not window:
        print(f"No mood entries found for {period.label}.")
        return

    st = aggregate(window)
    score = stability(st)
    points = trend_points(window, period, now)

    print(f"=== Mood Stats ({period.label}) ===")
    print(f"- since: {period_start(period, now).date().isoformat()}")
    print(f"- entries: {st.total_entries}")
    print(f"- days with data: {active_days(window)}")
    print(f"- average: {st.average_mood:.1f}/5")
    print(f"- stability: {score:.2f} ({stability_label(score)})")
    print(f"- range: {mood_range(window)}")
    print(f"- sparkline: {sparkline([p.mood_level for p in points])}")

    print("\n[Mood distribution]")
    for level in range(5, 0, -1):
        c = st.mood_counts.get(level, 0)
        bar = "▇" * min(c, 30)
        print(f"{ws.entitlements.mood_display(level)} {level}: {c:>3} {bar}")

    acts = activity_stats(window)
    if acts:
        print("\n[Top activities]")
        for a in acts[:10]:
            print(f"- {a.activity.name}: {a.count}× (avg mood {a.average_mood:.1f})")


def cmd_trend(args: argparse.Namespace) -> None:
    ws = args.workspace
    period = Period(args.period)
    series = aligned_trend_points if args.aligned else trend_points
    points = series(ws.journal.list(), period)

    if not points:
        print(f"No mood entries found for {period.label}.")
        return

    fmt = "%Y-%m" if period is Period.YEAR else "%m/%d"
    print(f"=== Mood Trend ({period.label}{', date-aligned' if args.aligned else ''}) ===")
    for p in points:
        print(f"- {p.timestamp.strftime(fmt)}: {p.mood_level:.1f}")
    print(f"- sparkline: {sparkline([p.mood_level for p in points])}")


# -------------------------
# EXPORT commands
# -------------------------

def cmd_export_csv(args: argparse.Namespace) -> None:
    ws = args.workspace
    entries = ws.journal.list()
    if not args.out:
        sys.stdout.write(entries_to_csv(entries))
        return
    out_path = Path(args.out).expanduser().resolve()
    n = write_csv(out_path, entries)
    print(f"📄 Exported {n} entries → {out_path}")


def cmd_export_report(args: argparse.Namespace) -> None:
    ws = args.workspace
    summary = data_summary(ws.journal.list(), ws.activities.custom(), ws.profiles.profile)
    _write_or_print(backup_report(summary), args.out)


def cmd_export_json(args: argparse.Namespace) -> None:
    ws = args.workspace
    _write_or_print(export_json(ws.profiles.profile, ws.journal.list(), ws.activities.custom()), args.out)


# -------------------------
# THEME / SKIN commands
# -------------------------

def _kind(args: argparse.Namespace) -> CatalogKind:
    return CatalogKind(args.catalog)


def cmd_catalog_list(args: argparse.Namespace) -> None:
    ws = args.workspace
    kind = _kind(args)
    current = ws.entitlements.current(kind)
    for d, unlocked in ws.entitlements.catalog(kind):
        mark = "▶" if d.id == current else ("🔓" if unlocked else "🔒")
        price = d.price_label or "免费"
        extra = ""
        if isinstance(d, SkinPackDescriptor):
            extra = " " + "".join(d.mood_emoji(level) for level in range(1, 6))
        print(f"{mark} {d.id:<15} {d.name} ({price}){extra}")


def cmd_catalog_unlock(args: argparse.Namespace) -> None:
    ws = args.workspace
    ws.entitlements.unlock(_kind(args), args.id)
    print(f"🔓 Unlocked {args.id}")


def cmd_catalog_apply(args: argparse.Namespace) -> None:
    ws = args.workspace
    ws.entitlements.apply(_kind(args), args.id)
    print(f"🎨 Applied {args.id}")


# -------------------------
# ACTIVITY commands
# -------------------------

def cmd_activity_list(args: argparse.Namespace) -> None:
    ws = args.workspace
    by_cat: dict[str, list[str]] = {}
    for a in ws.activities.all_activities():
        label = a.name + (" *" if a.is_custom else "")
        by_cat.setdefault(a.category.value, []).append(label)
    for cat, names in by_cat.items():
        print(f"[{cat}] {', '.join(names)}")
    if args.ids:
        for a in ws.activities.custom():
            print(f"- {a.id}  {a.name}")


def cmd_activity_add(args: argparse.Namespace) -> None:
    ws = args.workspace
    try:
        category = ActivityCategory(args.category)
    except ValueError as e:
        choices = ", ".join(c.value for c in ActivityCategory)
        raise SystemExit(f"--category must be one of: {choices}") from e
    act = ws.activities.add_custom(args.name, category, args.icon)
    print(f"🎯 Added activity {act.name} ({act.category.value}) id {act.id}")


def cmd_activity_delete(args: argparse.Namespace) -> None:
    ws = args.workspace
    ws.activities.delete_custom(args.id)
    print(f"🗑️ Deleted activity {args.id}")


# -------------------------
# MEDIA commands
# -------------------------

def cmd_media_reclaim(args: argparse.Namespace) -> None:
    ws = args.workspace
    n = ws.reclaim_orphans()
    print(f"🧹 Reclaimed {n} orphaned media file(s).")


def cmd_media_size(args: argparse.Namespace) -> None:
    ws = args.workspace
    print(ws.media.size_of(args.handle))


# -------------------------
# Core commands
# -------------------------

def cmd_where(args: argparse.Namespace) -> None:
    env = os.environ.get(ENV_VAR)
    if args.data_arg:
        reason = "because you passed --data-dir"
    elif env:
        reason = f"because {ENV_VAR} is set"
    elif args.profile:
        reason = f"because you used --profile {args.profile!r}"
    else:
        reason = "default XDG config location"

    print(args.data_dir)
    print(f"↳ using {reason}")


def _add_catalog_commands(sub: Any, name: str, kind: CatalogKind, help_text: str) -> None:
    p = sub.add_parser(name, help=help_text)
    p.set_defaults(catalog=kind.value)
    p_sub = p.add_subparsers(dest=f"{name}_cmd", required=True)

    p_sub.add_parser("list", help="List the catalog").set_defaults(func=cmd_catalog_list)

    unlock = p_sub.add_parser("unlock", help="Unlock an item")
    unlock.add_argument("id")
    unlock.set_defaults(func=cmd_catalog_unlock)

    apply = p_sub.add_parser("apply", help="Make an unlocked item current")
    apply.add_argument("id")
    apply.set_defaults(func=cmd_catalog_apply)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mj", description="Mood journal")
    p.add_argument("--data-dir", dest="data", default=None, help=f"Data directory (overrides {ENV_VAR}/default)")
    p.add_argument("--profile", default=None, help="Profile name (e.g. dev/test)")
    p.add_argument("--allow-repo-data-path", action="store_true", help="Override safety guard (not recommended)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")

    sub = p.add_subparsers(dest="cmd", required=True)
    sub.add_parser("where", help="Show which data directory is active and why").set_defaults(func=cmd_where)

    # ---- entry ----
    entry = sub.add_parser("entry", help="Journal entries")
    entry_sub = entry.add_subparsers(dest="entry_cmd", required=True)

    add = entry_sub.add_parser("add", help="Add a mood entry (1–5)")
    add.add_argument("--mood", type=int, required=True, help="Mood level 1–5")
    add.add_argument("--time", default=None, help="ISO, human, or relative (e.g. yesterday 9am, 3 days ago)")
    add.add_argument("--note", default=None)
    add.add_argument("--activities", default=None, help="Comma-separated activity names (e.g. 散步,阅读)")
    add.add_argument("--image", default=None, help="Attach a photo (path to a .jpg)")
    add.add_argument("--audio", default=None, help="Attach a voice note (path to a .m4a)")
    add.add_argument("--format", choices=["line", "block"], default="line")
    add.set_defaults(func=cmd_entry_add)

    lst = entry_sub.add_parser("list", help="List entries (newest first)")
    lst.add_argument("--limit", type=int, default=50)
    lst.add_argument("--format", choices=["line", "block"], default="line")
    lst.set_defaults(func=cmd_entry_list)

    show = entry_sub.add_parser("show", help="Show one entry")
    show.add_argument("id", help="Entry id or unique prefix")
    show.set_defaults(func=cmd_entry_show)

    edit = entry_sub.add_parser("edit", help="Edit an entry")
    edit.add_argument("id", help="Entry id or unique prefix")
    edit.add_argument("--mood", type=int, default=None)
    edit.add_argument("--time", default=None)
    edit.add_argument("--note", default=None, help="New note ('' clears it)")
    edit.add_argument("--activities", default=None, help="Replace activities ('' clears them)")
    edit.add_argument("--image", default=None)
    edit.add_argument("--audio", default=None)
    edit.add_argument("--drop-image", action="store_true")
    edit.add_argument("--drop-audio", action="store_true")
    edit.set_defaults(func=cmd_entry_edit)

    delete = entry_sub.add_parser("delete", help="Delete an entry and its attachments")
    delete.add_argument("id", help="Entry id or unique prefix")
    delete.set_defaults(func=cmd_entry_delete)

    # ---- stats ----
    periods = [x.value for x in Period]
    stats = sub.add_parser("stats", help="Statistics for a period")
    stats.add_argument("--period", choices=periods, default="week")
    stats.set_defaults(func=cmd_stats)

    trend = sub.add_parser("trend", help="Trend series for a period")
    trend.add_argument("--period", choices=periods, default="week")
    trend.add_argument("--aligned", action="store_true", help="Place points on their real dates")
    trend.set_defaults(func=cmd_trend)

    # ---- export ----
    export = sub.add_parser("export", help="Export the journal")
    export_sub = export.add_subparsers(dest="export_cmd", required=True)
    for name, func, help_text in (
        ("csv", cmd_export_csv, "CSV of every entry"),
        ("report", cmd_export_report, "Plain-text backup report"),
        ("json", cmd_export_json, "Full JSON export"),
    ):
        e = export_sub.add_parser(name, help=help_text)
        e.add_argument("--out", default=None, help="Output path (default: stdout)")
        e.set_defaults(func=func)

    # ---- theme / skin ----
    _add_catalog_commands(sub, "theme", CatalogKind.THEME, "Color themes")
    _add_catalog_commands(sub, "skin", CatalogKind.SKIN_PACK, "Mood skin packs")

    # ---- activity ----
    activity = sub.add_parser("activity", help="Activities")
    activity_sub = activity.add_subparsers(dest="activity_cmd", required=True)

    a_list = activity_sub.add_parser("list", help="List all activities (* = custom)")
    a_list.add_argument("--ids", action="store_true", help="Also print custom activity ids")
    a_list.set_defaults(func=cmd_activity_list)

    a_add = activity_sub.add_parser("add", help="Create a custom activity")
    a_add.add_argument("--name", required=True, help="1–10 characters")
    a_add.add_argument("--category", default=ActivityCategory.CUSTOM.value)
    a_add.add_argument("--icon", default=None)
    a_add.set_defaults(func=cmd_activity_add)

    a_del = activity_sub.add_parser("delete", help="Delete a custom activity")
    a_del.add_argument("id")
    a_del.set_defaults(func=cmd_activity_delete)

    # ---- media ----
    media = sub.add_parser("media", help="Media attachments")
    media_sub = media.add_subparsers(dest="media_cmd", required=True)
    media_sub.add_parser("reclaim", help="Delete media files no entry references").set_defaults(
        func=cmd_media_reclaim
    )
    size = media_sub.add_parser("size", help="Human-readable size of an attachment")
    size.add_argument("handle")
    size.set_defaults(func=cmd_media_size)

    return p


def main(argv=None) -> None:
    p = build_parser()
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    args.data_arg = args.data
    args.data_dir = resolve_data_dir(args.data, args.profile)

    assert_safe_data_dir(args.data_dir, args.allow_repo_data_path)

    try:
        if args.cmd != "where":
            args.workspace = Workspace.open(args.data_dir)
        args.func(args)
    except MoodJournalError as e:
        print(f"❌ {e}", file=sys.stderr)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
