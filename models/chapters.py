from sqlalchemy import Column, Integer, String
from database.db import Base

class Chapter(Base):
    __tablename__ = "chapters"  # 단원 정보 테이블

    id = Column(Integer, primary_key=True, index=True)           # 단원 고유 ID
    title = Column(String(200), nullable=False)                 # 단원 제목
    subject_id = Column(Integer, nullable=False, index=True)    # 과목 ID
    season_label = Column(String(100), nullable=False)          # 시즌 라벨 (입력된 자유 텍스트, 예: "Season 1")
    order = Column(Integer, nullable=False, default=1)          # 과목 내 순서
