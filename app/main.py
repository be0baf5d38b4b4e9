import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import create_db_and_tables
from app.jobs.order_expiry import INTERVAL_MINUTES as ORDER_EXPIRY_INTERVAL, run_order_expiry
from app.jobs.runner import run_periodically
from app.jobs.session_reminders import INTERVAL_MINUTES as REMINDER_INTERVAL, run_session_reminders
from app.routes import (
    admin,
    admin_courses,
    auth,
    cart,
    contact,
    content,
    course_categories,
    course_sub_categories,
    courses,
    email_webhook,
    enrollments,
    health,
    instructors,
    orders,
    payments,
    profile,
    roles,
    secure,
    wishlist,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()

    tasks = []
    if settings.run_background_jobs:
        tasks = [
            asyncio.create_task(run_periodically(run_session_reminders, REMINDER_INTERVAL)),
            asyncio.create_task(run_periodically(run_order_expiry, ORDER_EXPIRY_INTERVAL)),
        ]
        logger.info("Background jobs started")

    yield

    for task in tasks:
        task.cancel()


app = FastAPI(title="Ersa Training API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

API = "/api"

app.include_router(auth.router, prefix=f"{API}/auth", tags=["Authentication"])
app.include_router(profile.router, prefix=f"{API}/profile", tags=["Profile"])
app.include_router(roles.router, prefix=f"{API}/roles", tags=["Roles"])
app.include_router(courses.router, prefix=f"{API}/courses", tags=["Courses"])
app.include_router(course_categories.router, prefix=f"{API}/course-categories", tags=["Course Categories"])
app.include_router(course_sub_categories.router, prefix=f"{API}/course-sub-categories", tags=["Course Sub-Categories"])
app.include_router(instructors.router, prefix=f"{API}/instructors", tags=["Instructors"])
app.include_router(cart.router, prefix=f"{API}/cart", tags=["Cart"])
app.include_router(wishlist.router, prefix=f"{API}/wishlist", tags=["Wishlist"])
app.include_router(orders.router, prefix=f"{API}/orders", tags=["Orders"])
app.include_router(payments.router, prefix=f"{API}/payments", tags=["Payments"])
app.include_router(enrollments.router, prefix=f"{API}/my/enrollments", tags=["Enrollments"])
app.include_router(secure.router, prefix=f"{API}/secure", tags=["Secure Materials"])
app.include_router(secure.download_router, prefix=f"{API}/secure-download", tags=["Secure Materials"])
app.include_router(email_webhook.router, prefix=f"{API}/email", tags=["Email"])
app.include_router(content.router, prefix=f"{API}/content", tags=["Content"])
app.include_router(contact.router, prefix=f"{API}/contact", tags=["Contact"])
app.include_router(admin.router, prefix=f"{API}/admin", tags=["Admin"])
app.include_router(admin_courses.router, prefix=f"{API}/admin", tags=["Admin Courses"])
app.include_router(health.router, prefix=f"{API}/health", tags=["Health"])


@app.get("/")
def root():
    return {"name": "Ersa Training API", "docs": "/docs", "health": f"{API}/health"}
