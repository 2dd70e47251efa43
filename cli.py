import argparse
import csv
import json
import logging
import os
import shutil

from algorithms import WeightConverter
from rest_api import LiftLogAPI
from seeder import DEFAULT_SEED_PATH, seed_default_exercises
from session_service import SessionCompletionService, SessionLogger
from exercise_resolver import ExerciseResolver

logger = logging.getLogger(__name__)

CSV_FIELDS = ["exercise", "set", "weight", "unit", "reps", "rpe", "timestamp"]


def export_sessions(
    db_path: str, yaml_path: str, fmt: str, output_dir: str = "."
) -> list[str]:
    """Write one file per completed session and return the paths."""
    api = LiftLogAPI(db_path=db_path, yaml_path=yaml_path, seed=False)
    os.makedirs(output_dir, exist_ok=True)
    paths = []
    for session in api.sessions.fetch_sessions(completed_only=True, descending=False):
        summary = api.statistics.session_summary(session.id)
        out_path = os.path.join(output_dir, f"session_{session.id}.{fmt}")
        with open(out_path, "w", encoding="utf-8", newline="") as f:
            if fmt == "json":
                json.dump(summary, f, indent=2)
            else:
                writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
                writer.writeheader()
                for group in summary["exercises"]:
                    for number, entry in enumerate(group["sets"], start=1):
                        writer.writerow(
                            {
                                "exercise": group["exercise"],
                                "set": number,
                                "weight": entry["weight"],
                                "unit": entry["unit"],
                                "reps": entry["reps"],
                                "rpe": entry["rpe"] if entry["rpe"] is not None else "",
                                "timestamp": entry["timestamp"],
                            }
                        )
        paths.append(out_path)
    logger.info("Exported %d sessions to %s", len(paths), output_dir)
    return paths


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def seed_db(db_path: str, yaml_path: str, seed_path: str = DEFAULT_SEED_PATH) -> int:
    api = LiftLogAPI(db_path=db_path, yaml_path=yaml_path, seed=False)
    return seed_default_exercises(api.exercises, seed_path)


def demo_data(db_path: str, yaml_path: str) -> bool:
    """Populate an empty database with a plan and one completed session."""
    api = LiftLogAPI(db_path=db_path, yaml_path=yaml_path)
    if api.sessions.count() or api.plans.fetch_plans():
        print("Database already contains data")
        return False
    api.planner.create_plan(
        "Full Body",
        [
            {
                "name": "Day A",
                "exercises": [
                    {"name": "Back Squat", "sets": 3, "reps": "5"},
                    {"name": "Bench Press", "sets": 3, "reps": "5"},
                ],
            },
            {
                "name": "Day B",
                "exercises": [
                    {"name": "Deadlift", "sets": 1, "reps": "5"},
                    {"name": "Overhead Press", "sets": 3, "reps": "5"},
                ],
            },
        ],
        days_per_week=3,
    )
    day = api.planner.next_day()
    session_logger = SessionLogger(
        api.sessions,
        api.sets,
        ExerciseResolver(api.exercises),
        day,
        settings=api.settings,
    )
    while session_logger.can_log:
        session_logger.log_set(rpe=8)
    session_logger.finish()
    SessionCompletionService(api.sessions).complete(session_logger.session, 3)
    print("Demo data inserted")
    return True


def print_next_day(db_path: str, yaml_path: str) -> None:
    api = LiftLogAPI(db_path=db_path, yaml_path=yaml_path, seed=False)
    day = api.planner.next_day()
    if day is None:
        print("No active plan")
        return
    print(day.name)
    for planned in day.sorted_exercises:
        print(f"  {planned.exercise_name}: {planned.display_prescription}")


def print_stats(db_path: str, yaml_path: str, weeks: int | None = None) -> None:
    api = LiftLogAPI(db_path=db_path, yaml_path=yaml_path, seed=False)
    unit = api.settings.get_text("weight_unit", "lbs")
    for row in api.statistics.weekly_volume(weeks):
        print(f"{row['week_start']}: {row['volume']:.0f} {unit}")
    consistency = api.statistics.weekly_consistency()
    print(f"Days trained this week: {consistency['days_trained']}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="LiftLog utility commands")
    parser.add_argument("--log-level", default="WARNING")
    sub = parser.add_subparsers(dest="cmd", required=True)

    seed = sub.add_parser("seed")
    seed.add_argument("--db", default="liftlog.db")
    seed.add_argument("--yaml", default="settings.yaml")
    seed.add_argument("--file", default=DEFAULT_SEED_PATH)

    demo = sub.add_parser("demo")
    demo.add_argument("--db", default="liftlog.db")
    demo.add_argument("--yaml", default="settings.yaml")

    exp = sub.add_parser("export")
    exp.add_argument("--db", default="liftlog.db")
    exp.add_argument("--yaml", default="settings.yaml")
    exp.add_argument("--fmt", choices=["csv", "json"], default="csv")
    exp.add_argument("--out", default=".")

    bkp = sub.add_parser("backup")
    bkp.add_argument("--db", default="liftlog.db")
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")
    rst.add_argument("--db", default="liftlog.db")

    conv = sub.add_parser("convert")
    conv.add_argument("--weight", type=float, required=True)
    conv.add_argument("--unit", choices=["kg", "lbs"], required=True)

    nxt = sub.add_parser("next-day")
    nxt.add_argument("--db", default="liftlog.db")
    nxt.add_argument("--yaml", default="settings.yaml")

    stats = sub.add_parser("stats")
    stats.add_argument("--db", default="liftlog.db")
    stats.add_argument("--yaml", default="settings.yaml")
    stats.add_argument("--weeks", type=int)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "seed":
        print(f"Seeded {seed_db(args.db, args.yaml, args.file)} exercises")
    elif args.cmd == "demo":
        demo_data(args.db, args.yaml)
    elif args.cmd == "export":
        for path in export_sessions(args.db, args.yaml, args.fmt, args.out):
            print(path)
    elif args.cmd == "backup":
        backup_db(args.db, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, args.db)
    elif args.cmd == "convert":
        if args.unit == "kg":
            print(f"{args.weight} kg = {WeightConverter.kg_to_lb(args.weight)} lbs")
        else:
            print(f"{args.weight} lbs = {WeightConverter.lb_to_kg(args.weight)} kg")
    elif args.cmd == "next-day":
        print_next_day(args.db, args.yaml)
    elif args.cmd == "stats":
        print_stats(args.db, args.yaml, args.weeks)


if __name__ == "__main__":
    main()
