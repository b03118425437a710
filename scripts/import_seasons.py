import csv
from sqlalchemy.orm import Session
from database.db import SessionLocal
from models.seasons import Season as SeasonModel  # ✅ 모델 import

CSV_PATH = "data/seasons.csv"  # ✅ 파일 경로 (name_en,name_ar,name_ku,aliases,description,order)


def parse_aliases(raw: str):
    # "S1|season-one" → ["S1", "season-one"]
    return [a.strip() for a in (raw or "").split("|") if a.strip()]


def migrate_seasons(csv_path: str = CSV_PATH):
    db: Session = SessionLocal()
    count = 0

    try:
        with open(csv_path, newline="", encoding="utf-8-sig") as csvfile:
            reader = csv.DictReader(csvfile)
            for row in reader:
                order = int(row["order"])
                season = db.query(SeasonModel).filter(SeasonModel.order == order).first()
                if season is None:
                    season = SeasonModel(order=order)
                    db.add(season)
                season.name_en = row["name_en"].strip()              # 영어 이름
                season.name_ar = (row.get("name_ar") or "").strip() or None
                season.name_ku = (row.get("name_ku") or "").strip() or None
                season.aliases = parse_aliases(row.get("aliases"))   # 레거시 코드
                season.description = row.get("description") or None
                count += 1
        db.commit()
    finally:
        db.close()

    print(f"✅ 시즌 CSV → DB 마이그레이션 완료 ({count}건)")
    return count


if __name__ == "__main__":
    migrate_seasons()
