from sqlalchemy import func
from sqlmodel import select


def paginate(
    *,
    session,
    query,
    page: int = 1,
    page_size: int = 20,
    serializer=None,
):
    page = max(page, 1)
    if page_size < 1 or page_size > 100:
        page_size = 20

    total = session.exec(
        select(func.count()).select_from(query.subquery())
    ).one()

    rows = session.exec(
        query.offset((page - 1) * page_size).limit(page_size)
    ).all()

    return {
        "items": [serializer(r) for r in rows] if serializer else rows,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": (total + page_size - 1) // page_size,
    }
