import argparse
import csv
from sqlalchemy.orm import Session
from database.db import SessionLocal
from models.result_config import ResultPeriod
from schemas.results import ComponentScoreIn, ResultIn
from services.result_service import ResultService

# Columns: student_id, subject_id, period_id, session_id, then one column per
# assessment component key (e.g. ca1, ca2, exam). Blank cells are skipped.
ID_COLUMNS = ("student_id", "subject_id", "period_id", "session_id")


def import_results(db: Session, csv_path: str, school_id: int) -> int:
    service = ResultService(db)
    components_by_period = {}
    count = 0

    with open(csv_path, newline="", encoding="utf-8-sig") as csvfile:
        reader = csv.DictReader(csvfile)
        for row in reader:
            period_id = int(row["period_id"])
            if period_id not in components_by_period:
                period = db.get(ResultPeriod, period_id)
                components_by_period[period_id] = (
                    {c.key: c.id for c in period.configuration.assessment_components} if period else {}
                )
            component_ids = components_by_period[period_id]

            scores = [
                ComponentScoreIn(component_id=component_ids[key], score=float(value))
                for key, value in row.items()
                if key not in ID_COLUMNS and key in component_ids and value not in (None, "")
            ]
            service.save_result(school_id, ResultIn(
                student_id=int(row["student_id"]),
                subject_id=int(row["subject_id"]),
                period_id=period_id,
                session_id=int(row["session_id"]),
                component_scores=scores,
            ))
            count += 1

    db.commit()
    return count


def main():
    parser = argparse.ArgumentParser(description="Import component scores from CSV")
    parser.add_argument("csv_path")
    parser.add_argument("school_id", type=int)
    args = parser.parse_args()

    db: Session = SessionLocal()
    try:
        count = import_results(db, args.csv_path, args.school_id)
    finally:
        db.close()
    print(f"✅ {count} results imported from {args.csv_path}")


if __name__ == "__main__":
    main()
