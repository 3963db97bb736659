"""CLI entry point for the job-board matching engine."""

import argparse
import logging
import sys

from src.core.config import Settings
from src.core.db import (
    find_candidate_by_id,
    find_candidates_with_skills,
    find_job_by_id,
    init_db,
    list_system_messages,
)
from src.core.importer import import_records
from src.matching.completeness import analyze_completeness
from src.matching.scorer import CompositeScorer
from src.notify import available_mailers, get_mailer
from src.notify.messages import PROMOTION_TYPES
from src.pipeline.orchestrator import (
    export_results_json,
    get_recommendations,
    handle_job_posted,
    promote_job,
    reply_to_message,
)


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job-board matching engine - rank candidates, recommend jobs, dispatch alerts",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- import ---
    import_parser = subparsers.add_parser("import", help="Load candidates and jobs from YAML")
    import_parser.add_argument("data", help="YAML file with 'candidates' and/or 'jobs' lists")
    _add_common(import_parser)

    # --- rank ---
    rank_parser = subparsers.add_parser("rank", help="Rank all skilled candidates for a job")
    rank_parser.add_argument("--job", required=True, help="Job ID")
    rank_parser.add_argument("--top", type=int, default=20, help="Rows to print (default: 20)")
    rank_parser.add_argument("--export", choices=["json"], help="Export full ranking (json)")
    _add_common(rank_parser)

    # --- post-job ---
    post_parser = subparsers.add_parser(
        "post-job",
        help="Run the job-posted flow: rank, then email and message the best matches",
    )
    post_parser.add_argument("--job", required=True, help="Job ID")
    post_parser.add_argument(
        "--mailer",
        default="log",
        choices=available_mailers(),
        help="Mail transport (default: log)",
    )
    post_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the dispatch plan without sending or storing anything",
    )
    _add_common(post_parser)

    # --- recommend ---
    rec_parser = subparsers.add_parser("recommend", help="Recommend open jobs to a candidate")
    rec_parser.add_argument("--candidate", required=True, help="Candidate ID")
    _add_common(rec_parser)

    # --- promote ---
    promo_parser = subparsers.add_parser("promote", help="Notify matching candidates about a promoted job")
    promo_parser.add_argument("--job", required=True, help="Job ID")
    promo_parser.add_argument(
        "--type",
        dest="promotion_type",
        default="featured_job",
        help=f"Promotion type ({', '.join(PROMOTION_TYPES)})",
    )
    _add_common(promo_parser)

    # --- messages ---
    msgs_parser = subparsers.add_parser("messages", help="List a candidate's system messages")
    msgs_parser.add_argument("--candidate", required=True, help="Candidate ID")
    msgs_parser.add_argument("--all", action="store_true", help="Include messages already replied to")
    _add_common(msgs_parser)

    # --- reply ---
    reply_parser = subparsers.add_parser("reply", help="Reply to a system message")
    reply_parser.add_argument("--candidate", required=True, help="Candidate ID")
    reply_parser.add_argument("--message", type=int, required=True, help="System message ID")
    _add_common(reply_parser)

    # --- completeness ---
    comp_parser = subparsers.add_parser("completeness", help="Show profile completeness for a candidate")
    comp_parser.add_argument("--candidate", required=True, help="Candidate ID")
    _add_common(comp_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def cmd_import(args: argparse.Namespace, settings: Settings) -> None:
    conn = init_db(settings.database.path)
    n_candidates, n_jobs = import_records(conn, args.data)
    conn.close()
    print(f"Imported {n_candidates} candidates and {n_jobs} jobs into {settings.database.path}")


def cmd_rank(args: argparse.Namespace, settings: Settings) -> None:
    conn = init_db(settings.database.path)
    job = find_job_by_id(conn, args.job)
    if job is None:
        conn.close()
        msg = f"Job not found: {args.job}"
        raise LookupError(msg)

    scorer = CompositeScorer(settings.scoring, settings.recommendations)
    ranked = scorer.rank_candidates(job, find_candidates_with_skills(conn))
    conn.close()

    if args.export == "json":
        print(export_results_json(ranked))
        return

    print(f"{len(ranked)} candidates ranked for '{job.title}'")
    for i, r in enumerate(ranked[: args.top], start=1):
        reasons = "; ".join(r.match_reasons) or "-"
        print(f"  {i:>3}. {r.candidate_id:<20} {r.aggregate_score:>5.0f}  {reasons}")


def cmd_post_job(args: argparse.Namespace, settings: Settings) -> None:
    conn = init_db(settings.database.path)
    job = find_job_by_id(conn, args.job)
    if job is None:
        conn.close()
        msg = f"Job not found: {args.job}"
        raise LookupError(msg)

    mailer = None if args.dry_run else get_mailer(args.mailer, settings.dispatch.email_batch_size)
    result = handle_job_posted(job, conn, settings, mailer=mailer, dry_run=args.dry_run)
    conn.close()

    prefix = "[DRY RUN] " if args.dry_run else ""
    print(f"{prefix}'{job.title}': {len(result.ranked)} candidates ranked")
    print(f"{prefix}  Email batch: {len(result.plan.email_batch)}"
          f"{' (suppressed)' if result.plan.email_suppressed else ''}")
    print(f"{prefix}  Message batch: {len(result.plan.message_batch)}"
          f"{' (suppressed)' if result.plan.message_suppressed else ''}")
    if result.email_report is not None:
        r = result.email_report
        print(f"  Emails sent: {r.sent_count}/{r.total_count}, failed: {len(r.failed_emails)}")
    if result.message_ids:
        print(f"  System messages stored: {len(result.message_ids)}")


def cmd_recommend(args: argparse.Namespace, settings: Settings) -> None:
    conn = init_db(settings.database.path)
    result = get_recommendations(args.candidate, conn, settings)
    conn.close()

    if result.profile_incomplete:
        print(f"Note: profile incomplete, missing {', '.join(result.missing_critical_fields)}")
    if not result.recommendations:
        print("No matching jobs found. Try updating your profile or skills.")
        return
    header = (
        "Here are some opportunities that might interest you"
        if result.low_confidence
        else f"Found {len(result.recommendations)} highly-matched job recommendations"
    )
    print(f"{header} (avg score {result.average_score})")
    for rec in result.recommendations:
        print(f"  {rec.match_percentage:>3}%  {rec.job.title} ({rec.job.id})")
        for reason in rec.match_reasons:
            print(f"        - {reason}")


def cmd_promote(args: argparse.Namespace, settings: Settings) -> None:
    conn = init_db(settings.database.path)
    result = promote_job(args.job, args.promotion_type, conn, settings)
    conn.close()
    print(f"Promotion notifications sent to {len(result.notified)} candidates")
    for n in result.notified:
        print(f"  {n['candidate_id']}: {n['match_score']}")


def cmd_messages(args: argparse.Namespace, settings: Settings) -> None:
    conn = init_db(settings.database.path)
    rows = list_system_messages(conn, args.candidate, include_replied=args.all)
    conn.close()
    if not rows:
        print(f"No system messages for {args.candidate}")
        return
    for row in rows:
        status = "replied" if row["has_replied"] else "awaiting reply"
        title = row["title"] or row["message_type"]
        print(f"  #{row['id']:<5} {row['job_id']:<12} {row['score']:>5g}  {title} ({status})")


def cmd_reply(args: argparse.Namespace, settings: Settings) -> None:
    conn = init_db(settings.database.path)
    try:
        reply_to_message(args.message, args.candidate, conn)
    finally:
        conn.close()
    print(f"Reply recorded for message #{args.message}")


def cmd_completeness(args: argparse.Namespace, settings: Settings) -> None:
    conn = init_db(settings.database.path)
    candidate = find_candidate_by_id(conn, args.candidate)
    conn.close()
    if candidate is None:
        msg = f"Candidate not found: {args.candidate}"
        raise LookupError(msg)

    report = analyze_completeness(candidate)
    print(f"Profile {report.completion_percentage}% complete "
          f"({report.completed_fields}/{report.total_fields})")
    if report.missing_fields:
        print(f"  Missing: {', '.join(report.missing_fields)}")


_COMMANDS = {
    "import": cmd_import,
    "rank": cmd_rank,
    "post-job": cmd_post_job,
    "recommend": cmd_recommend,
    "promote": cmd_promote,
    "completeness": cmd_completeness,
    "messages": cmd_messages,
    "reply": cmd_reply,
}


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        _COMMANDS[args.command](args, settings)
    except (FileNotFoundError, LookupError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
