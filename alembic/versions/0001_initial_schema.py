"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_status = sa.Enum("pending_email_verification", "active", "inactive", "suspended", name="userstatus")
course_type = sa.Enum("live", "pdf", name="coursetype")
course_level = sa.Enum("beginner", "intermediate", "advanced", name="courselevel")
attachment_type = sa.Enum("pdf", "video", "document", name="attachmenttype")
order_status = sa.Enum(
    "new", "pending_payment", "paid", "under_process", "processed",
    "expired", "failed", "refunded", "cancelled",
    name="orderstatus",
)
bill_status = sa.Enum("pending", "paid", "failed", "expired", name="billstatus")
payment_status = sa.Enum(
    "pending", "processing", "completed", "failed", "cancelled", "refunded", name="paymentstatus"
)
enrollment_status = sa.Enum("pending", "paid", "notified", "completed", "cancelled", name="enrollmentstatus")
email_status = sa.Enum(
    "pending", "sent", "delivered", "opened", "clicked", "bounced", "failed", name="emailstatus"
)
contact_status = sa.Enum("new", "in_progress", "resolved", "closed", name="contactstatus")


def _timestamps(updated=True):
    cols = [sa.Column("created_at", sa.DateTime(), nullable=False)]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(), nullable=False))
    return cols


def upgrade():
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("locale", sa.String(), nullable=False),
        sa.Column("country", sa.String(), nullable=True),
        sa.Column("status", user_status, nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False),
        sa.Column("is_super_admin", sa.Boolean(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("admin_notes", sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "role",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_role_name", "role", ["name"], unique=True)

    op.create_table(
        "user_role",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), primary_key=True),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("role.id"), primary_key=True),
    )

    op.create_table(
        "course_category",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title_ar", sa.String(), nullable=False),
        sa.Column("title_en", sa.String(), nullable=False),
        sa.Column("subtitle_ar", sa.String(), nullable=True),
        sa.Column("subtitle_en", sa.String(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "course",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("type", course_type, nullable=False),
        sa.Column("level", course_level, nullable=False),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("course_category.id"), nullable=True),
        sa.Column("title_ar", sa.String(), nullable=False),
        sa.Column("title_en", sa.String(), nullable=False),
        sa.Column("summary_ar", sa.String(), nullable=True),
        sa.Column("summary_en", sa.String(), nullable=True),
        sa.Column("description_ar", sa.String(), nullable=True),
        sa.Column("description_en", sa.String(), nullable=True),
        sa.Column("course_topics_ar", sa.String(), nullable=True),
        sa.Column("course_topics_en", sa.String(), nullable=True),
        sa.Column("duration_ar", sa.String(), nullable=True),
        sa.Column("duration_en", sa.String(), nullable=True),
        sa.Column("starts_on", sa.DateTime(), nullable=True),
        sa.Column("ends_on", sa.DateTime(), nullable=True),
        sa.Column("sessions_notes_ar", sa.String(), nullable=True),
        sa.Column("sessions_notes_en", sa.String(), nullable=True),
        sa.Column("instructor_name_ar", sa.String(), nullable=True),
        sa.Column("instructor_name_en", sa.String(), nullable=True),
        sa.Column("instructors_bio_ar", sa.String(), nullable=True),
        sa.Column("instructors_bio_en", sa.String(), nullable=True),
        sa.Column("video_url", sa.String(), nullable=True),
        sa.Column("photo_key", sa.String(), nullable=True),
        sa.Column("tags", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_featured", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_course_slug", "course", ["slug"], unique=True)

    op.create_table(
        "instructor",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("instructor_name_en", sa.String(length=255), nullable=False),
        sa.Column("instructor_name_ar", sa.String(length=255), nullable=False),
        sa.Column("instructor_bio_en", sa.String(length=2500), nullable=True),
        sa.Column("instructor_bio_ar", sa.String(length=2500), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_instructor_instructor_name_en", "instructor", ["instructor_name_en"])

    op.create_table(
        "course_instructor",
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("course.id"), primary_key=True),
        sa.Column("instructor_id", sa.Integer(), sa.ForeignKey("instructor.id"), primary_key=True),
        *_timestamps(updated=False),
    )

    op.create_table(
        "course_sub_category",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title_ar", sa.String(length=255), nullable=False),
        sa.Column("title_en", sa.String(length=255), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "course_sub_category_mapping",
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("course.id"), primary_key=True),
        sa.Column(
            "sub_category_id", sa.Integer(), sa.ForeignKey("course_sub_category.id"), primary_key=True
        ),
        *_timestamps(updated=False),
    )

    op.create_table(
        "course_session",
        "course_sub_category_mapping",
        "course_sub_category",
        "course_instructor",
        "instructor",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("course.id"), nullable=False),
        sa.Column("title_ar", sa.String(), nullable=False),
        sa.Column("title_en", sa.String(), nullable=False),
        sa.Column("description_ar", sa.String(), nullable=True),
        sa.Column("description_en", sa.String(), nullable=True),
        sa.Column("start_at", sa.DateTime(), nullable=False),
        sa.Column("end_at", sa.DateTime(), nullable=False),
        sa.Column("teams_link", sa.String(), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_course_session_course_id", "course_session", ["course_id"])

    op.create_table(
        "attachment",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("course.id"), nullable=False),
        sa.Column("file_name", sa.String(), nullable=False),
        sa.Column("blob_path", sa.String(), nullable=False),
        sa.Column("type", attachment_type, nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_attachment_course_id", "attachment", ["course_id"])

    op.create_table(
        "cart",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("anonymous_id", sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_cart_user_id", "cart", ["user_id"])
    op.create_index("ix_cart_anonymous_id", "cart", ["anonymous_id"])

    op.create_table(
        "cart_item",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("cart_id", sa.Integer(), sa.ForeignKey("cart.id"), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("course.id"), nullable=False),
        sa.Column("session_id", sa.Integer(), sa.ForeignKey("course_session.id"), nullable=True),
        sa.Column("qty", sa.Integer(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_cart_item_cart_id", "cart_item", ["cart_id"])

    op.create_table(
        "wishlist",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_wishlist_user_id", "wishlist", ["user_id"], unique=True)

    op.create_table(
        "wishlist_item",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("wishlist_id", sa.Integer(), sa.ForeignKey("wishlist.id"), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("course.id"), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_wishlist_item_wishlist_id", "wishlist_item", ["wishlist_id"])

    op.create_table(
        "order",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("status", order_status, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_order_user_id", "order", ["user_id"])
    op.create_index("ix_order_status", "order", ["status"])

    op.create_table(
        "order_item",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("order.id"), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("course.id"), nullable=False),
        sa.Column("session_id", sa.Integer(), sa.ForeignKey("course_session.id"), nullable=True),
        sa.Column("title_en", sa.String(), nullable=False),
        sa.Column("title_ar", sa.String(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("qty", sa.Integer(), nullable=False),
    )
    op.create_index("ix_order_item_order_id", "order_item", ["order_id"])

    op.create_table(
        "bill",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("order.id"), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("status", bill_status, nullable=False),
        sa.Column("payment_provider", sa.String(), nullable=True),
        sa.Column("provider_transaction_id", sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_bill_order_id", "bill", ["order_id"], unique=True)
    op.create_index("ix_bill_provider_transaction_id", "bill", ["provider_transaction_id"])

    op.create_table(
        "payment",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("order.id"), nullable=False),
        sa.Column("provider", sa.String(), nullable=False),
        sa.Column("provider_ref", sa.String(), nullable=True),
        sa.Column("status", payment_status, nullable=False),
        sa.Column("captured_at", sa.DateTime(), nullable=True),
        sa.Column("raw_payload", sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_payment_order_id", "payment", ["order_id"])
    op.create_index("ix_payment_provider", "payment", ["provider"])
    op.create_index("ix_payment_provider_ref", "payment", ["provider_ref"])

    op.create_table(
        "enrollment",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("course.id"), nullable=False),
        sa.Column("session_id", sa.Integer(), sa.ForeignKey("course_session.id"), nullable=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("order.id"), nullable=False),
        sa.Column("status", enrollment_status, nullable=False),
        sa.Column("enrolled_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("order_id", "course_id", "session_id", name="uq_enrollment_order_course_session"),
    )
    op.create_index("ix_enrollment_user_id", "enrollment", ["user_id"])
    op.create_index("ix_enrollment_course_id", "enrollment", ["course_id"])
    op.create_index("ix_enrollment_session_id", "enrollment", ["session_id"])
    op.create_index("ix_enrollment_order_id", "enrollment", ["order_id"])

    op.create_table(
        "secure_link",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("enrollment_id", sa.Integer(), sa.ForeignKey("enrollment.id"), nullable=False),
        sa.Column("attachment_id", sa.Integer(), sa.ForeignKey("attachment.id"), nullable=False),
        sa.Column("token", sa.String(), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False),
        sa.Column("download_count", sa.Integer(), nullable=False),
        sa.Column("last_downloaded_at", sa.DateTime(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_secure_link_token", "secure_link", ["token"], unique=True)
    op.create_index("ix_secure_link_enrollment_id", "secure_link", ["enrollment_id"])
    op.create_index("ix_secure_link_attachment_id", "secure_link", ["attachment_id"])

    op.create_table(
        "email_template",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("subject_ar", sa.String(), nullable=False),
        sa.Column("subject_en", sa.String(), nullable=False),
        sa.Column("body_html_ar", sa.String(), nullable=False),
        sa.Column("body_html_en", sa.String(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_email_template_key", "email_template", ["key"], unique=True)

    op.create_table(
        "email_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("enrollment_id", sa.Integer(), sa.ForeignKey("enrollment.id"), nullable=True),
        sa.Column("template_key", sa.String(), nullable=False),
        sa.Column("locale", sa.String(), nullable=False),
        sa.Column("status", email_status, nullable=False),
        sa.Column("provider_msg_id", sa.String(), nullable=True),
        sa.Column("sent_at", sa.DateTime(), nullable=True),
        sa.Column("opened_at", sa.DateTime(), nullable=True),
        sa.Column("clicked_at", sa.DateTime(), nullable=True),
        sa.Column("error_message", sa.String(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_email_log_user_id", "email_log", ["user_id"])
    op.create_index("ix_email_log_enrollment_id", "email_log", ["enrollment_id"])
    op.create_index("ix_email_log_template_key", "email_log", ["template_key"])
    op.create_index("ix_email_log_provider_msg_id", "email_log", ["provider_msg_id"])

    op.create_table(
        "order_event",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("order.id"), nullable=False),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("label", sa.String(), nullable=False),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column("created_by", sa.String(length=100), nullable=False),
        *_timestamps(updated=False),
    )
    # indexes for fast timeline queries
    op.create_index("ix_order_event_order_id", "order_event", ["order_id"])
    op.create_index("ix_order_event_event_type", "order_event", ["event_type"])
    op.create_index("ix_order_event_created_at", "order_event", ["created_at"])

    op.create_table(
        "content_page",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("page_key", sa.String(), nullable=False),
        sa.Column("title_ar", sa.String(), nullable=False),
        sa.Column("title_en", sa.String(), nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_content_page_page_key", "content_page", ["page_key"], unique=True)

    op.create_table(
        "content_section",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("page_id", sa.Integer(), sa.ForeignKey("content_page.id"), nullable=False),
        sa.Column("section_key", sa.String(), nullable=False),
        sa.Column("title_ar", sa.String(), nullable=True),
        sa.Column("title_en", sa.String(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_content_section_page_id", "content_section", ["page_id"])

    op.create_table(
        "content_block",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("section_id", sa.Integer(), sa.ForeignKey("content_section.id"), nullable=False),
        sa.Column("block_key", sa.String(), nullable=False),
        sa.Column("block_type", sa.String(), nullable=False),
        sa.Column("content_ar", sa.String(), nullable=True),
        sa.Column("content_en", sa.String(), nullable=True),
        sa.Column("image_key", sa.String(), nullable=True),
        sa.Column("link_url", sa.String(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_content_block_section_id", "content_block", ["section_id"])

    op.create_table(
        "content_version",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("page_id", sa.Integer(), sa.ForeignKey("content_page.id"), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("snapshot", sa.JSON(), nullable=True),
        sa.Column("change_note", sa.String(), nullable=True),
        sa.Column("is_published", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("user.id"), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_content_version_page_id", "content_version", ["page_id"])

    op.create_table(
        "contact_message",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("subject", sa.String(), nullable=False),
        sa.Column("message", sa.String(), nullable=False),
        sa.Column("locale", sa.String(), nullable=False),
        sa.Column("status", contact_status, nullable=False),
        sa.Column("admin_response", sa.String(), nullable=True),
        sa.Column("responded_by", sa.Integer(), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("responded_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_contact_message_email", "contact_message", ["email"])


def downgrade():
    for table in (
        "contact_message",
        "content_version",
        "content_block",
        "content_section",
        "content_page",
        "order_event",
        "email_log",
        "email_template",
        "secure_link",
        "enrollment",
        "payment",
        "bill",
        "order_item",
        "order",
        "wishlist_item",
        "wishlist",
        "cart_item",
        "cart",
        "attachment",
        "course_session",
        "course_sub_category_mapping",
        "course_sub_category",
        "course_instructor",
        "instructor",
        "course",
        "course_category",
        "user_role",
        "role",
        "user",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in (
        contact_status, email_status, enrollment_status, payment_status, bill_status,
        order_status, attachment_type, course_level, course_type, user_status,
    ):
        enum.drop(bind, checkfirst=True)
