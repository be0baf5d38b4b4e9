from unittest.mock import patch

import pytest
from sqlmodel import select

from app.models.attachment import Attachment
from app.models.email import EmailLog, EmailStatus, EmailTemplateKeys
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.order import OrderStatus
from app.models.secure_link import SecureLink
from app.services import enrollment_service, secure_link_service


@pytest.fixture
def paid_pdf_enrollment(session, user, pdf_course, make_order):
    order, _ = make_order(user, pdf_course, status=OrderStatus.paid)
    enrollments = enrollment_service.create_enrollments_from_order(session, order)
    session.commit()
    return enrollments[0]


class TestCreateEnrollments:
    def test_one_enrollment_per_item(self, session, user, live_course, course_session, make_order):
        order, _ = make_order(user, live_course, session_id=course_session.id, status=OrderStatus.paid)

        enrollments = enrollment_service.create_enrollments_from_order(session, order)
        session.commit()

        assert len(enrollments) == 1
        assert enrollments[0].status == EnrollmentStatus.paid
        assert enrollment_service.api_status(enrollments[0]) == "active"

    def test_second_call_creates_nothing(self, session, user, live_course, make_order):
        order, _ = make_order(user, live_course, status=OrderStatus.paid)
        enrollment_service.create_enrollments_from_order(session, order)
        session.commit()

        assert enrollment_service.create_enrollments_from_order(session, order) == []
        assert len(session.exec(select(Enrollment)).all()) == 1


class TestFulfillment:
    def test_live_details_sent(self, session, user, live_course, course_session, email_templates, make_order, sendgrid):
        order, _ = make_order(user, live_course, session_id=course_session.id, status=OrderStatus.paid)
        enrollment = enrollment_service.create_enrollments_from_order(session, order)[0]
        session.commit()

        assert enrollment_service.fulfill_enrollment(session, enrollment)

        session.refresh(enrollment)
        assert enrollment.status == EnrollmentStatus.notified
        log = session.exec(select(EmailLog).where(EmailLog.enrollment_id == enrollment.id)).one()
        assert log.template_key == EmailTemplateKeys.LIVE_DETAILS
        assert log.status == EmailStatus.sent
        assert log.provider_msg_id == "sg-msg-1"
        assert sendgrid.call_args.args[2] == "<p>Hello Sara Ahmed</p>"

    def test_materials_delivered_with_links(self, session, attachment, paid_pdf_enrollment, email_templates, sendgrid):
        assert enrollment_service.fulfill_enrollment(session, paid_pdf_enrollment)

        link = session.exec(select(SecureLink)).one()
        assert link.attachment_id == attachment.id
        session.refresh(paid_pdf_enrollment)
        assert paid_pdf_enrollment.status == EnrollmentStatus.notified

    def test_failed_send_is_logged(self, session, user, live_course, course_session, email_templates, make_order):
        from app.services.email_service import EmailSendError

        order, _ = make_order(user, live_course, session_id=course_session.id, status=OrderStatus.paid)
        enrollment = enrollment_service.create_enrollments_from_order(session, order)[0]
        session.commit()

        with patch("app.services.email_service._post_to_sendgrid", side_effect=EmailSendError("503")):
            assert not enrollment_service.send_live_details(session, enrollment.id)

        log = session.exec(select(EmailLog)).one()
        assert log.status == EmailStatus.failed
        assert log.error_message == "503"
        session.refresh(enrollment)
        assert enrollment.status == EnrollmentStatus.paid

    def test_fulfill_enrollments_swallows_errors(self, session, paid_pdf_enrollment):
        with patch.object(enrollment_service, "fulfill_enrollment", side_effect=RuntimeError("boom")):
            enrollment_service.fulfill_enrollments(session, [paid_pdf_enrollment])


class TestSecureLinks:
    def test_links_are_reused(self, session, attachment, paid_pdf_enrollment):
        first = secure_link_service.create_secure_links(session, paid_pdf_enrollment.id, [attachment.id])
        second = secure_link_service.create_secure_links(session, paid_pdf_enrollment.id, [attachment.id])

        assert first[0].token == second[0].token
        assert len(first[0].token) == 43

    def test_attachment_from_other_course(self, session, live_course, paid_pdf_enrollment):
        other = Attachment(course_id=live_course.id, file_name="x.pdf", blob_path="x.pdf")
        session.add(other)
        session.commit()

        with pytest.raises(ValueError):
            secure_link_service.create_secure_links(session, paid_pdf_enrollment.id, [other.id])

    def test_revoked_link_not_resolved(self, session, attachment, paid_pdf_enrollment):
        link = secure_link_service.create_secure_links(session, paid_pdf_enrollment.id, [attachment.id])[0]

        assert enrollment_service.revoke_secure_link(session, link.id)
        assert secure_link_service.get_secure_link_by_token(session, link.token) is None

    def test_revoked_attachment_gets_no_link(self, session, attachment, paid_pdf_enrollment):
        attachment.is_revoked = True
        session.add(attachment)
        session.commit()

        with pytest.raises(ValueError, match="revoked"):
            secure_link_service.create_secure_links(session, paid_pdf_enrollment.id, [attachment.id])
        assert session.exec(select(SecureLink)).all() == []

    def test_deliver_materials_skips_revoked(self, session, pdf_course, attachment, paid_pdf_enrollment, email_templates):
        retired = Attachment(course_id=pdf_course.id, file_name="old.pdf", blob_path="old.pdf", is_revoked=True)
        session.add(retired)
        session.commit()

        assert enrollment_service.deliver_materials(session, paid_pdf_enrollment.id, [attachment.id, retired.id])

        links = session.exec(select(SecureLink)).all()
        assert [link.attachment_id for link in links] == [attachment.id]

    def test_deliver_only_revoked_sends_nothing(self, session, attachment, paid_pdf_enrollment, email_templates, sendgrid):
        attachment.is_revoked = True
        session.add(attachment)
        session.commit()

        assert not enrollment_service.deliver_materials(session, paid_pdf_enrollment.id, [attachment.id])
        sendgrid.assert_not_called()


class TestSecureDownload:
    def _link(self, session, attachment, enrollment):
        return secure_link_service.create_secure_links(session, enrollment.id, [attachment.id])[0]

    def test_download_counts(self, client, session, attachment, paid_pdf_enrollment):
        link = self._link(session, attachment, paid_pdf_enrollment)

        with patch("app.services.storage_service.download_file", return_value=b"%PDF-1.4 data"):
            response = client.get(f"/api/secure/materials/{link.token}")

        assert response.status_code == 200
        assert response.content == b"%PDF-1.4 data"
        assert 'filename="workbook.pdf"' in response.headers["content-disposition"]
        session.refresh(link)
        assert link.download_count == 1
        assert link.last_downloaded_at is not None

    def test_secure_download_alias(self, client, session, attachment, paid_pdf_enrollment):
        link = self._link(session, attachment, paid_pdf_enrollment)
        with patch("app.services.storage_service.download_file", return_value=b"abc"):
            assert client.get(f"/api/secure-download/{link.token}").status_code == 200

    def test_unknown_token(self, client):
        assert client.get("/api/secure/materials/nope").status_code == 404

    def test_revoked_token(self, client, session, attachment, paid_pdf_enrollment):
        link = self._link(session, attachment, paid_pdf_enrollment)
        secure_link_service.revoke_secure_link(session, link.id)

        assert client.get(f"/api/secure/materials/{link.token}").status_code == 400

    def test_revoked_attachment_blocks_existing_link(self, client, session, attachment, paid_pdf_enrollment):
        link = self._link(session, attachment, paid_pdf_enrollment)
        attachment.is_revoked = True
        session.add(attachment)
        session.commit()

        with patch("app.services.storage_service.download_file", return_value=b"abc") as download:
            assert client.get(f"/api/secure/materials/{link.token}").status_code == 400
        download.assert_not_called()

    def test_missing_blob(self, client, session, attachment, paid_pdf_enrollment):
        link = self._link(session, attachment, paid_pdf_enrollment)
        with patch("app.services.storage_service.download_file", return_value=None):
            assert client.get(f"/api/secure/materials/{link.token}").status_code == 404
        session.refresh(link)
        assert link.download_count == 0

    def test_info(self, client, session, attachment, paid_pdf_enrollment):
        link = self._link(session, attachment, paid_pdf_enrollment)
        info = client.get(f"/api/secure/materials/{link.token}/info").json()

        assert info["file_name"] == "workbook.pdf"
        assert info["course_title_en"] == "Excel Basics"


class TestMyEnrollments:
    def test_lists_own_enrollments(self, client, auth_headers, paid_pdf_enrollment):
        response = client.get("/api/my/enrollments", headers=auth_headers)

        assert response.status_code == 200
        items = response.json()
        assert items[0]["status"] == "active"
        assert items[0]["course"]["slug"] == "excel-basics"

    def test_other_users_enrollment_is_404(self, client, admin_headers, paid_pdf_enrollment):
        response = client.get(f"/api/my/enrollments/{paid_pdf_enrollment.id}", headers=admin_headers)
        assert response.status_code == 404
