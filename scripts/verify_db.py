import os
import sys

from dotenv import load_dotenv
from sqlalchemy import inspect, text

# Add project root to path so we can import src
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.storage.database import COVERAGE_VIEW, get_engine

# Force reload of .env
load_dotenv(override=True)

REQUIRED_TABLES = [
    "subjects",
    "modules",
    "module_standards",
    "lessons",
    "practice_items",
    "question_options",
    "assessments",
    "assessment_sections",
    "assessment_questions",
    "assets",
]


def verify_connection():
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        print("❌ ERROR: DATABASE_URL not found in .env")
        sys.exit(1)

    print(f"🔄 Connecting to: {db_url.split('@')[-1]}")  # Print only host for privacy

    try:
        engine = get_engine(db_url)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            print("✅ Connection Successful!")

            inspector = inspect(conn)
            missing = [t for t in REQUIRED_TABLES if not inspector.has_table(t)]
            if missing:
                print(f"❌ Missing tables: {', '.join(missing)} (run fill_gaps.py --init-db)")
                sys.exit(1)

            if COVERAGE_VIEW not in inspector.get_view_names():
                print(f"❌ Missing view: {COVERAGE_VIEW}")
                sys.exit(1)

            modules = conn.execute(text("SELECT count(*) FROM modules")).scalar()
            deficient = conn.execute(text(
                f"SELECT count(DISTINCT module_id) FROM {COVERAGE_VIEW} "
                "WHERE meets_practice_baseline = 0 OR meets_assessment_baseline = 0 "
                "OR meets_external_baseline = 0"
            )).scalar()
            print(f"✅ Schema Verified. Found {modules} modules, {deficient} below baseline.")

    except Exception as e:
        print(f"\n❌ CONNECTION FAILED: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    verify_connection()
