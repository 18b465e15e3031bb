# slip_service/user_friendly_errors.py

"""
Centralized dictionary for mapping fetch exceptions to user-friendly messages.
"""

ERROR_MAP = {
    "DocumentUnavailable": {
        "message": "Booking code not found. The code may be invalid or expired.",
        "suggestion": "Check the code on the bookmaker's site and make sure the slip is still open."
    },
    "AccessDenied": {
        "message": "Access to the booking slip was refused. The slip may be private.",
        "suggestion": "Make sure the slip is shared publicly, or paste the slip text instead."
    },
    "FetchTimeout": {
        "message": "The bookmaker took too long to respond.",
        "suggestion": "This is usually temporary. Please try again in a few minutes."
    },
    "TransportFailure": {
        "message": "The bookmaker is temporarily unreachable.",
        "suggestion": "This is usually temporary. Please try again in a few minutes."
    },
    "BookingCodeMissing": {
        "message": "No booking code could be found in the slip text.",
        "suggestion": "Include the booking code in the text or send it separately."
    },
    "default": {
        "message": "The slip could not be processed because of an unexpected error.",
        "suggestion": "Try again later. If it keeps happening, paste the slip text instead."
    }
}
