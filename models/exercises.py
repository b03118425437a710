from sqlalchemy import Column, Integer, String, Float, Boolean
from database.db import Base

class Exercise(Base):
    __tablename__ = "exercises"  # 연습문제 테이블

    id = Column(Integer, primary_key=True, index=True)           # 연습문제 고유 ID
    name = Column(String(200), nullable=False)                  # 연습문제 이름
    part_id = Column(Integer, nullable=False, index=True)       # 파트 ID
    degree = Column(Float, nullable=False, default=10)          # 배점 (학생 점수 상한)
    is_active = Column(Boolean, nullable=False, default=True)   # 활성 여부
