from sqlalchemy import Column, Integer, String, Boolean
from database.db import Base

class Student(Base):
    __tablename__ = "students"  # 학생 기본 정보 테이블

    id = Column(Integer, primary_key=True, index=True)               # 고유 학생 ID (Primary Key)
    full_name = Column(String(100), nullable=False)                 # 학생 이름
    student_number = Column(String(30), unique=True)                # 학번
    class_id = Column(Integer)                                      # 소속 반 ID
    is_active = Column(Boolean, nullable=False, default=True)       # 재학 여부
