from app.models.user import User
from app.models.role import Role, UserRole
from app.models.category import CourseCategory, CourseSubCategory, CourseSubCategoryMapping
from app.models.course import Course
from app.models.instructor import Instructor, CourseInstructor
from app.models.course_session import CourseSession
from app.models.attachment import Attachment
from app.models.cart import Cart, CartItem
from app.models.wishlist import Wishlist, WishlistItem
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.bill import Bill
from app.models.payment import Payment
from app.models.enrollment import Enrollment
from app.models.secure_link import SecureLink
from app.models.email import EmailTemplate, EmailLog
from app.models.order_event import OrderEvent
from app.models.content import ContentPage, ContentSection, ContentBlock, ContentVersion
from app.models.contact import ContactMessage

# add ALL models here
