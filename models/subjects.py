from sqlalchemy import Column, Integer, String, Boolean
from database.db import Base

class Subject(Base):
    __tablename__ = "subjects"  # 과목 정보 테이블

    id = Column(Integer, primary_key=True, index=True)         # 과목 고유 ID (Primary Key)
    title = Column(String(100), nullable=False)               # 과목 이름 (예: Math, Physics)
    category = Column(String(50))                             # 과목 분류
    is_active = Column(Boolean, nullable=False, default=True) # 활성 여부
