# Role: Central enum of intents the classifier may return. Values are the labels the classifier model
# is asked to emit, so they double as the wire format of IntentResult.raw_label.

from enum import Enum


class Intent(str, Enum):
    BOOK_APPOINTMENT = "BookAppointment"
    STUDENT_LETTER = "StudentLetter"
    OFFICE_HOURS = "OfficeHours"
    QNA = "QnA"
    NONE = "None"
