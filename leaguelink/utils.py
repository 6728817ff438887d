"""Utility functions for the application."""

import os
import smtplib
import tempfile

from firebase_admin import storage
from flask import current_app, jsonify, render_template, request
from flask_mail import Message
from werkzeug.utils import secure_filename

from .core.constants import ALLOWED_IMAGE_EXTENSIONS, FIRESTORE_BATCH_LIMIT
from .errors import ValidationError
from .extensions import mail


class EmailError(Exception):
    """Base class for email errors."""

    pass


def send_email(to, subject, template, **kwargs):
    """Send an email to a recipient.

    Raises:
        EmailError: If sending the email fails.
    """
    msg = Message(
        subject,
        recipients=[to],
        html=render_template(template, **kwargs),
        sender=current_app.config["MAIL_DEFAULT_SENDER"],
    )
    try:
        mail.send(msg)
    except smtplib.SMTPAuthenticationError as e:
        raise EmailError(f"SMTP Authentication failed: {e}") from e
    except Exception as e:
        raise EmailError(f"Failed to send email: {e}") from e


def allowed_image(filename):
    """Return True if the filename carries an accepted image extension."""
    if not filename or "." not in filename:
        return False
    return filename.rsplit(".", 1)[1].lower() in ALLOWED_IMAGE_EXTENSIONS


def upload_file(file_storage, folder):
    """Upload a file to Firebase Storage under ``folder`` and return its public URL.

    Raises:
        ValidationError: If the file is missing or not an image.
    """
    if not file_storage or not getattr(file_storage, "filename", None):
        raise ValidationError("No file provided.")
    if not allowed_image(file_storage.filename):
        raise ValidationError("Images only!")

    filename = secure_filename(file_storage.filename)
    bucket = storage.bucket()
    blob = bucket.blob(f"{folder}/{filename}")

    with tempfile.NamedTemporaryFile(suffix=os.path.splitext(filename)[1]) as tmp:
        file_storage.save(tmp.name)
        blob.upload_from_filename(tmp.name)

    blob.make_public()
    return str(blob.public_url)


def api_response(data, status_code=200):
    """Wrap ``data`` in the standard success envelope."""
    return jsonify({"success": True, "data": data}), status_code


def validate_form(form):
    """Validate a Flask-WTF form or raise ValidationError with the first message."""
    if form.validate_on_submit():
        return form
    for field_name, errors in form.errors.items():
        if errors:
            label = getattr(form, field_name).label.text
            raise ValidationError(f"{label}: {errors[0]}")
    raise ValidationError("Invalid request body.")


def submitted_fields(form):
    """Return ``form.data`` limited to the fields present in the JSON body."""
    payload = request.get_json(silent=True) or {}
    return {key: value for key, value in form.data.items() if form[key].name in payload}


def commit_in_batches(db, operations):
    """Apply ``(op, ref, data)`` writes in Firestore batches of bounded size.

    ``op`` is ``"update"`` or ``"delete"``. Returns the number of writes.
    """
    batch = db.batch()
    pending = 0
    for op, ref, data in operations:
        if op == "delete":
            batch.delete(ref)
        else:
            batch.update(ref, data)
        pending += 1
        if pending % FIRESTORE_BATCH_LIMIT == 0:
            batch.commit()
            batch = db.batch()
    if pending % FIRESTORE_BATCH_LIMIT:
        batch.commit()
    return pending
