# graffic/scripts/create_tables.py
from graffic.db.base import Base, import_models
from graffic.db.session import engine

# Every model must be imported so SQLAlchemy registers it in Base.metadata
import_models()


def create_all_tables() -> None:
    print("Creating database tables...")
    try:
        Base.metadata.create_all(engine)
        print("✅ Database tables created successfully!")
    except Exception as e:
        print(f"❌ Failed to create database tables: {e}")
        raise


if __name__ == "__main__":
    create_all_tables()
