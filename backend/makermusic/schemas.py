from datetime import date, datetime, time
from decimal import Decimal
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictBool, model_validator
from pydantic.alias_generators import to_camel

from .models import (
    AttendanceStatus,
    DayOfWeek,
    MessageType,
    PaymentMethod,
    PaymentStatus,
    UserRole,
)

# bcrypt only looks at the first 72 bytes.
MAX_PASSWORD_BYTES = 72


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RowModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


def _check_password(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


Password = Annotated[str, Field(min_length=6), AfterValidator(_check_password)]


class MessageResponse(BaseModel):
    message: str


# --- users ---


class RegisterRequest(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=5, max_length=255)
    password: Password
    role: UserRole = UserRole.STUDENT


class RegisterResponse(CamelModel):
    message: str
    user_id: int


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class UserOut(RowModel):
    id: int
    name: str
    email: str
    role: UserRole


class LoginResponse(BaseModel):
    token: str
    user: UserOut


class ForgotPasswordRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)


class ResetPasswordRequest(CamelModel):
    token: str = Field(min_length=1, max_length=32)
    new_password: Password


class UpdatePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: Password


class TeacherOut(RowModel):
    id: int
    name: str


class StudentOut(RowModel):
    id: int
    name: str
    email: str
    student_level: str | None = None
    instrument_category: str | None = None


# --- admin ---


class AdminRegisterRequest(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=5, max_length=255)
    password: Password
    role: UserRole
    teacher_id: int | None = None
    student_level: str | None = Field(default=None, max_length=100)
    instrument_category: str | None = Field(default=None, max_length=100)
    teacher_category: str | None = Field(default=None, max_length=100)
    teacher_level: str | None = Field(default=None, max_length=100)


class EditUserRequest(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=5, max_length=255)
    role: UserRole


class AssignTeacherRequest(CamelModel):
    student_id: int
    teacher_id: int | None = None


class UserSummary(RowModel):
    id: int
    name: str
    email: str
    role: UserRole
    teacher_id: int | None = None


# --- schedules and attendance ---


class ScheduleCreateRequest(CamelModel):
    student_id: int
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    activity: str = Field(min_length=1, max_length=255)

    @model_validator(mode="after")
    def _check_times(self):
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class ScheduleCreated(CamelModel):
    message: str
    schedule_id: int


class StudentScheduleOut(RowModel):
    id: int
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    activity: str
    teacher_name: str


class TeacherDayScheduleOut(RowModel):
    id: int
    start_time: time
    end_time: time
    activity: str
    student_id: int
    student_name: str
    attendance_status: AttendanceStatus | None = None


class AttendanceRequest(CamelModel):
    schedule_id: int
    student_id: int
    class_date: date
    status: AttendanceStatus


# --- tasks ---


class TaskCreateRequest(CamelModel):
    student_id: int
    title: str = Field(min_length=1, max_length=255)
    due_date: date | None = None


class TaskStatusRequest(BaseModel):
    completed: StrictBool


class TaskOut(RowModel):
    id: int
    title: str
    due_date: date | None = None
    completed: bool


class TaskDetail(RowModel):
    title: str
    due_date: date | None = None
    completed: bool
    completed_at: datetime | None = None


class PerformanceOut(BaseModel):
    total: int
    completed: int
    tasks: list[TaskDetail]


# --- finance ---


class PaymentCreateRequest(CamelModel):
    student_id: int
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    payment_date: date
    status: PaymentStatus = PaymentStatus.PENDING
    description: str | None = Field(default=None, max_length=255)


class PaymentOut(RowModel):
    id: int
    student_id: int
    amount: float
    description: str
    payment_date: date
    status: PaymentStatus
    payment_method: PaymentMethod | None = None
    paid_at: datetime | None = None
    student_name: str | None = None


class PayRequest(CamelModel):
    payment_method: PaymentMethod


class PaymentStatusRequest(BaseModel):
    status: PaymentStatus


class PaymentActionResponse(CamelModel):
    message: str
    email_sent: bool
    payment: PaymentOut


# --- notices ---


class NoticeCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    category: str = Field(default="GERAL", max_length=50)


class NoticeUpdateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    category: str = Field(default="GERAL", max_length=50)


class NoticeOut(RowModel):
    id: int
    title: str
    content: str
    author_id: int | None = None
    author_name: str
    category: str
    is_pinned: bool
    created_at: datetime


class NoticeCreated(BaseModel):
    message: str
    id: int


# --- chat ---


class SendMessageRequest(CamelModel):
    receiver_id: int
    message_text: str | None = None
    message_type: MessageType = MessageType.TEXT
    file_url: str | None = Field(default=None, max_length=500)
    file_name: str | None = Field(default=None, max_length=255)
    file_size: int | None = Field(default=None, ge=0)


class MessageOut(RowModel):
    id: int
    sender_id: int
    receiver_id: int
    message_text: str
    message_type: MessageType
    file_url: str | None = None
    file_name: str | None = None
    file_size: int | None = None
    sent_at: datetime


class SendMessageResponse(CamelModel):
    message: str
    message_id: int
    data: MessageOut


class UploadResponse(CamelModel):
    message: str
    file_url: str
    file_name: str
    file_size: int
    message_type: MessageType
