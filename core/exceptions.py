class ActionError(Exception):
    """Business rule violation with a message fit for display"""
    pass


UNEXPECTED_ERROR_MESSAGE = 'An unexpected error occurred. Please try again.'
