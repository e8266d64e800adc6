"""User-facing messages for the client application.

Messages are Arabic, matching the audience of the shipped UI.  Each
:class:`~logoforge.core.retry.ErrorKind` maps to one message.
"""

from __future__ import annotations

from logoforge.core.retry import Err, ErrorKind

FORM_INCOMPLETE = "يرجى إدخال اسم المشروع بالإنجليزية ووصف الشعار."
GENERIC_FAILURE = "فشل في معالجة البيانات."
IMAGE_FAILURE = "فشل في توليد الصورة"

_KIND_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.MISSING_KEY: "مفتاح الـ API غير موجود. تأكد من إعدادات البيئة.",
    ErrorKind.VALIDATION: FORM_INCOMPLETE,
    ErrorKind.FORBIDDEN: "تم رفض الوصول (403). تحقق من صلاحيات مفتاح الـ API.",
    ErrorKind.NOT_FOUND: "النموذج المطلوب غير متاح (404).",
    ErrorKind.RATE_LIMITED: "تجاوزت الحد المسموح من الطلبات (429). انتظر دقيقة ثم حاول مجدداً.",
    ErrorKind.SERVER: "فشل في توليد التحليل. حاول مرة أخرى",
    ErrorKind.NETWORK: "تعذر الاتصال بالخادم. تحقق من الاتصال بالإنترنت.",
    ErrorKind.UNKNOWN: GENERIC_FAILURE,
}


def message_for(err: Err) -> str:
    """Return the message to show for a failed call.

    Status-specific kinds (missing key, 403, 404, 429) always use the local
    message; otherwise a server-supplied message is preferred.
    """
    if err.kind in (
        ErrorKind.MISSING_KEY,
        ErrorKind.FORBIDDEN,
        ErrorKind.NOT_FOUND,
        ErrorKind.RATE_LIMITED,
    ):
        return _KIND_MESSAGES[err.kind]
    return err.message or _KIND_MESSAGES.get(err.kind, GENERIC_FAILURE)
