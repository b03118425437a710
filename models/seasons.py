from sqlalchemy import Column, Integer, String, Boolean, JSON, Text
from database.db import Base

class Season(Base):
    __tablename__ = "seasons"  # 학기(시즌) 정보 테이블

    id = Column(Integer, primary_key=True, index=True)            # 시즌 고유 ID (Primary Key)
    name_en = Column(String(100), nullable=False, unique=True)   # 영어 이름 (예: Season 1)
    name_ar = Column(String(100))                                # 아랍어 이름
    name_ku = Column(String(100))                                # 쿠르드어 이름
    aliases = Column(JSON, default=list)                         # 레거시 코드/별칭 목록
    description = Column(Text)                                   # 설명
    order = Column(Integer, nullable=False, unique=True)         # 순서 (1부터, 이름 매칭 실패 시 식별용)
    is_active = Column(Boolean, nullable=False, default=True)    # 활성 여부

    @property
    def names(self):
        """다국어 이름 + 별칭 전체 집합"""
        values = {self.name_en, self.name_ar, self.name_ku, *(self.aliases or [])}
        return {v for v in values if v and v.strip()}
