import logging

from app import app, engine, Base, Subject, SessionLocal, seed_subjects_data


def seed_data():
    session = SessionLocal()
    try:
        seed_subjects_data(session)
        session.commit()
        total = session.query(Subject).count()
        logging.info("Subjects seeded successfully (%s rows).", total)
        return total
    except Exception as exc:
        session.rollback()
        logging.warning("Seeding failed: %s", exc)
        raise
    finally:
        session.close()


if __name__ == "__main__":
    with app.app_context():
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        seed_data()
        print("Database refreshed and seeded!")
