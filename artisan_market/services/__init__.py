from flask import current_app


def payment_gateway():
    return current_app.extensions["payment_gateway"]


def mailer():
    return current_app.extensions["mailer"]


def content_generator():
    return current_app.extensions.get("content_generator")
