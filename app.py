import os
import logging
from datetime import datetime
from werkzeug.security import generate_password_hash

from flask import Flask, jsonify, request
from flask_cors import CORS
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, create_engine, text
from sqlalchemy.orm import declarative_base, relationship, scoped_session, sessionmaker

from subject_spec import normalize_subjects, primary_subject

# Flask setup with CORS for the admin frontend (e.g., http://localhost:3000)
app = Flask(__name__)
cors_origins = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]
CORS(app, resources={r"/api/*": {"origins": cors_origins}})

# Database configuration
db_url = os.environ.get("DATABASE_URL")
if db_url and db_url.startswith("postgres://"):
    db_url = db_url.replace("postgres://", "postgresql://", 1)
if not db_url:
    db_url = "sqlite:///local.db"
engine = create_engine(db_url, pool_pre_ping=True, pool_recycle=1800)
SessionLocal = scoped_session(sessionmaker(bind=engine))
Base = declarative_base()
logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())


def init_db():
    try:
        Base.metadata.create_all(bind=engine)
        return True, "tables ensured"
    except Exception as exc:
        logging.warning("DB init failed: %s", exc)
        return False, str(exc)


def hash_password(raw: str):
    if not raw:
        return None
    return generate_password_hash(raw)


# ORM models
class Course(Base):
    __tablename__ = "courses"
    id = Column(Integer, primary_key=True, autoincrement=True)
    course_code = Column(String(20), nullable=False, unique=True)
    course_name = Column(String(150), nullable=False)
    description = Column(Text)
    subject = Column(String(150), nullable=False)
    grade_level = Column(String(20), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class Teacher(Base):
    __tablename__ = "teachers"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(120), nullable=False, unique=True)
    username = Column(String(50), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(20))
    employee_id = Column(String(20))
    subject = Column(String(150))  # legacy single-subject readers: always subjects[0]
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    subject_links = relationship(
        "TeacherSubject",
        order_by="TeacherSubject.position",
        cascade="all, delete-orphan",
    )

    @property
    def subjects(self):
        return [link.subject_name for link in self.subject_links]


class TeacherSubject(Base):
    __tablename__ = "teacher_subjects"
    id = Column(Integer, primary_key=True, autoincrement=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False)
    subject_name = Column(String(150), nullable=False)
    position = Column(Integer, nullable=False, default=0)


class Subject(Base):
    __tablename__ = "subjects"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False)
    category = Column(String(50), nullable=False)  # Core, Applied, Specialized
    level_band = Column(String(10), nullable=False)  # JHS, SHS
    track = Column(String(50))  # e.g., STEM, ABM, HUMSS
    grade_min = Column(Integer)  # starting grade level (7-12)
    grade_max = Column(Integer)  # ending grade level (7-12)


# Ensure tables exist (idempotent; safe for first run on sqlite)
init_db()


# Utility helpers
def error_response(status: int, message: str, detail: str = None):
    # Clients only ever see the static message; the detail goes to the log.
    if detail:
        logging.warning("%s: %s", message, detail)
    return jsonify({"error": message}), status


def get_session():
    try:
        session = SessionLocal()
        session.execute(text("SELECT 1"))
        return session
    except Exception as exc:
        return None, exc


def check_admin_token():
    token = os.environ.get("ADMIN_INIT_TOKEN")
    if token:
        provided = request.headers.get("X-Admin-Init-Token") or request.args.get("token")
        if provided != token:
            return error_response(403, "Forbidden")
    return None


def require_fields(data, fields):
    missing = [f for f in fields if not data.get(f)]
    if missing:
        raise ValueError(f"Missing fields: {', '.join(missing)}")


def assign_subjects(teacher: "Teacher", subjects):
    if not subjects:
        raise ValueError("at least one subject is required")
    teacher.subject_links = [
        TeacherSubject(subject_name=name, position=idx) for idx, name in enumerate(subjects)
    ]
    teacher.subject = primary_subject(subjects)


def course_to_dict(c: "Course"):
    return {
        "id": c.id,
        "course_code": c.course_code,
        "course_name": c.course_name,
        "description": c.description,
        "subject": c.subject,
        "grade_level": c.grade_level,
    }


def teacher_to_dict(t: "Teacher"):
    subjects = t.subjects
    return {
        "id": t.id,
        "name": t.name,
        "email": t.email,
        "username": t.username,
        "phone": t.phone,
        "employee_id": t.employee_id,
        "subject": t.subject,
        "subjects": subjects,
        "subjects_display": ", ".join(subjects),
    }


def seed_subjects_data(session):
    session.query(Subject).delete()

    def add_subjects(names, band, category, gmin=None, gmax=None, track=None):
        for n in names:
            session.add(
                Subject(
                    name=n,
                    category=category,
                    level_band=band,
                    track=track,
                    grade_min=gmin,
                    grade_max=gmax,
                )
            )

    # Group A: JHS languages and social studies
    add_subjects(["English", "Filipino", "Araling Panlipunan", "Values Education"], "JHS", "Core", 7, 10)

    # Group B: JHS Math & Science
    add_subjects(["Mathematics", "Science"], "JHS", "Core", 7, 10)

    # Group C: JHS MAPEH/TLE
    add_subjects(["Art", "Music", "Physical Education", "TLE"], "JHS", "Core", 7, 10)

    # Group D: SHS Core Subjects
    add_subjects(
        [
            "Oral Communication",
            "Reading and Writing",
            "General Mathematics",
            "Statistics and Probability",
            "Earth and Life Science",
        ],
        "SHS",
        "Core",
        11,
        12,
    )

    # Group E: SHS Applied/Specialized
    add_subjects(["Empowerment Technologies", "Entrepreneurship", "Practical Research"], "SHS", "Applied", 11, 12)
    add_subjects(["Pre-Calculus", "Basic Calculus", "General Chemistry"], "SHS", "Specialized", 11, 12, "STEM")


def ensure_subjects_catalog():
    """Seed default subjects if none exist so the teacher form has choices."""
    session = SessionLocal()
    try:
        total = session.query(Subject).count()
        if total == 0:
            seed_subjects_data(session)
            session.commit()
    except Exception as exc:
        session.rollback()
        logging.warning("ensure_subjects_catalog failed: %s", exc)
    finally:
        session.close()


@app.route("/api/admin/init", methods=["POST", "GET"])
def admin_init():
    token_err = check_admin_token()
    if token_err:
        return token_err
    ok, msg = init_db()
    if ok:
        return jsonify({"message": msg})
    return error_response(500, "Init failed", msg)


@app.route("/api/admin/seed-subjects", methods=["POST", "GET"])
def admin_seed_subjects():
    token_err = check_admin_token()
    if token_err:
        return token_err

    ok, msg = init_db()
    if not ok:
        return error_response(500, "Init failed", msg)

    session_or_none = get_session()
    if isinstance(session_or_none, tuple):
        session, exc = session_or_none
        return error_response(500, "Database connection failed", str(exc))
    session = session_or_none
    try:
        seed_subjects_data(session)
        session.commit()
        return jsonify({"message": "Subjects seeded"})
    except Exception as exc:
        session.rollback()
        return error_response(500, "Seeding failed", str(exc))
    finally:
        session.close()


@app.route("/api/courses", methods=["GET"])
def list_courses():
    session_or_none = get_session()
    if isinstance(session_or_none, tuple):
        session, exc = session_or_none
        return error_response(500, "Failed to get courses", str(exc))
    session = session_or_none
    try:
        rows = session.query(Course).order_by(Course.course_code.asc()).all()
        return jsonify([course_to_dict(c) for c in rows])
    except Exception as exc:
        return error_response(500, "Failed to get courses", str(exc))
    finally:
        session.close()


@app.route("/api/courses", methods=["POST"])
def create_course():
    data = request.get_json(silent=True) or {}
    session_or_none = get_session()
    if isinstance(session_or_none, tuple):
        session, exc = session_or_none
        return error_response(500, "Failed to create course", str(exc))
    session = session_or_none
    try:
        course = Course(
            course_code=data.get("course_code"),
            course_name=data.get("course_name"),
            description=data.get("description"),
            subject=data.get("subject"),
            grade_level=data.get("grade_level"),
        )
        session.add(course)
        session.commit()
        return jsonify(course_to_dict(course)), 201
    except Exception as exc:
        session.rollback()
        return error_response(500, "Failed to create course", str(exc))
    finally:
        session.close()


@app.route("/api/courses/<int:course_id>", methods=["PUT"])
def update_course(course_id: int):
    data = request.get_json(silent=True) or {}
    session_or_none = get_session()
    if isinstance(session_or_none, tuple):
        session, exc = session_or_none
        return error_response(500, "Failed to update course", str(exc))
    session = session_or_none
    try:
        course = session.query(Course).filter_by(id=course_id).first()
        if not course:
            return jsonify(None)
        for field in ["course_code", "course_name", "description", "subject", "grade_level"]:
            setattr(course, field, data.get(field))
        session.commit()
        return jsonify(course_to_dict(course))
    except Exception as exc:
        session.rollback()
        return error_response(500, "Failed to update course", str(exc))
    finally:
        session.close()


@app.route("/api/courses/<int:course_id>", methods=["DELETE"])
def delete_course(course_id: int):
    session_or_none = get_session()
    if isinstance(session_or_none, tuple):
        session, exc = session_or_none
        return error_response(500, "Failed to delete course", str(exc))
    session = session_or_none
    try:
        session.query(Course).filter(Course.id == course_id).delete(synchronize_session=False)
        session.commit()
        return jsonify({"message": "Course deleted"})
    except Exception as exc:
        session.rollback()
        return error_response(500, "Failed to delete course", str(exc))
    finally:
        session.close()


@app.route("/api/teachers", methods=["GET"])
def list_teachers():
    session_or_none = get_session()
    if isinstance(session_or_none, tuple):
        session, exc = session_or_none
        return error_response(500, "Failed to get teachers", str(exc))
    session = session_or_none
    try:
        rows = session.query(Teacher).order_by(Teacher.name.asc(), Teacher.id.asc()).all()
        return jsonify([teacher_to_dict(t) for t in rows])
    except Exception as exc:
        return error_response(500, "Failed to get teachers", str(exc))
    finally:
        session.close()


@app.route("/api/teachers", methods=["POST"])
def create_teacher():
    data = request.get_json(silent=True) or {}
    session_or_none = get_session()
    if isinstance(session_or_none, tuple):
        session, exc = session_or_none
        return error_response(500, "Failed to create teacher", str(exc))
    session = session_or_none
    try:
        require_fields(data, ["name", "email", "username", "password"])
        teacher = Teacher(
            name=data["name"].strip(),
            email=data["email"].strip(),
            username=data["username"].strip(),
            password_hash=hash_password(data["password"]),
            phone=data.get("phone"),
            employee_id=data.get("employee_id"),
        )
        assign_subjects(teacher, normalize_subjects(data))
        session.add(teacher)
        session.commit()
        return jsonify(teacher_to_dict(teacher)), 201
    except Exception as exc:
        session.rollback()
        return error_response(500, "Failed to create teacher", str(exc))
    finally:
        session.close()


@app.route("/api/teachers/<int:teacher_id>", methods=["PUT"])
def update_teacher(teacher_id: int):
    data = request.get_json(silent=True) or {}
    session_or_none = get_session()
    if isinstance(session_or_none, tuple):
        session, exc = session_or_none
        return error_response(500, "Failed to update teacher", str(exc))
    session = session_or_none
    try:
        teacher = session.query(Teacher).filter_by(id=teacher_id).first()
        if not teacher:
            return jsonify(None)
        # username is fixed at creation and passwords are only set on create
        require_fields(data, ["name", "email"])
        teacher.name = data["name"].strip()
        teacher.email = data["email"].strip()
        teacher.phone = data.get("phone")
        teacher.employee_id = data.get("employee_id")
        assign_subjects(teacher, normalize_subjects(data))
        session.commit()
        return jsonify(teacher_to_dict(teacher))
    except Exception as exc:
        session.rollback()
        return error_response(500, "Failed to update teacher", str(exc))
    finally:
        session.close()


@app.route("/api/teachers/<int:teacher_id>", methods=["DELETE"])
def delete_teacher(teacher_id: int):
    session_or_none = get_session()
    if isinstance(session_or_none, tuple):
        session, exc = session_or_none
        return error_response(500, "Failed to delete teacher", str(exc))
    session = session_or_none
    try:
        teacher = session.query(Teacher).filter_by(id=teacher_id).first()
        if teacher:
            session.delete(teacher)
            session.commit()
        return jsonify({"message": "Teacher deleted"})
    except Exception as exc:
        session.rollback()
        return error_response(500, "Failed to delete teacher", str(exc))
    finally:
        session.close()


@app.route("/api/scheduling/available-subjects", methods=["GET"])
def available_subjects():
    # Make sure subjects exist (fresh DB safety)
    ensure_subjects_catalog()
    session_or_none = get_session()
    if isinstance(session_or_none, tuple):
        session, exc = session_or_none
        return error_response(500, "Failed to get subjects", str(exc))
    session = session_or_none
    try:
        rows = session.query(Subject.name).order_by(Subject.level_band, Subject.category, Subject.name).all()
        names = []
        for (name,) in rows:
            if name not in names:
                names.append(name)
        return jsonify(names)
    except Exception as exc:
        return error_response(500, "Failed to get subjects", str(exc))
    finally:
        session.close()


@app.route("/api/subjects", methods=["GET"])
def list_subjects():
    level_band = request.args.get("level_band")
    category = request.args.get("category")

    session_or_none = get_session()
    if isinstance(session_or_none, tuple):
        session, exc = session_or_none
        return error_response(500, "Failed to get subjects", str(exc))
    session = session_or_none
    try:
        query = session.query(Subject)
        if level_band:
            query = query.filter(Subject.level_band == level_band)
        if category:
            query = query.filter(Subject.category == category)
        subjects = query.order_by(Subject.level_band, Subject.category, Subject.track, Subject.name).all()
        return jsonify(
            [
                {
                    "id": s.id,
                    "name": s.name,
                    "category": s.category,
                    "level_band": s.level_band,
                    "track": s.track,
                    "grade_min": s.grade_min,
                    "grade_max": s.grade_max,
                }
                for s in subjects
            ]
        )
    except Exception as exc:
        return error_response(500, "Failed to get subjects", str(exc))
    finally:
        session.close()


@app.errorhandler(404)
def not_found(_):
    return error_response(404, "Not found")


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
