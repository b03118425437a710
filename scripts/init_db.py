from database.db import Base, engine

# ✅ 테이블 정의 등록 (import 만으로 Base.metadata 에 추가됨)
from models import seasons, subjects, chapters, parts, exercises, students, grades  # noqa: F401


def init_db():
    Base.metadata.create_all(bind=engine)
    print("✅ 테이블 생성 완료:", ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    init_db()
