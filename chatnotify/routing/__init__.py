"""Notification routing — maps decoded events to rendered e-mails.

The closed set of event types maps one-to-one onto template functions in
``templates``.  ``NotificationDispatcher`` picks the template, validates the
recipient and hands the result to the mail transport.
"""
