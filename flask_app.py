"""
Flask application for the construction project intake form.
Renders the form, keeps each session's form state between requests and runs the
submission pipeline (validation → AI analysis → Supabase) on submit.
"""

import io
import os
import uuid
import logging
from typing import Optional

from flask import Flask, render_template, request, redirect, url_for, session, jsonify, send_file, abort

from intake.analysis import AnalysisClient
from intake.config import Settings, load_settings
from intake.constants import ALLOWED_EXTENSIONS, BRAZILIAN_STATES
from intake.form_state import FormSessionStore, FormState, IDLE_SECONDS, MAX_FORMS
from intake.previews import PreviewRegistry
from intake.runner import SubmissionRunner
from intake.schema import Attachment, IMAGE_FIELDS, MAX_IMAGES
from intake.supabase_client import create_supabase_client
from intake.supabase_db import ProjectStore

UNSUPPORTED_IMAGE = "Formato de imagem não suportado: {filename}. Use PNG ou JPEG."


def allowed_file(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def create_app(
    settings: Optional[Settings] = None,
    analyzer=None,
    store=None,
    max_forms: int = MAX_FORMS,
    form_idle_seconds: float = IDLE_SECONDS,
) -> Flask:
    """
    Build the Flask app.

    Clients are created once here and injected into the submission runner. Without
    explicit settings the environment is read and missing credentials stop startup.
    Tests pass analyzer/store doubles and skip the real clients entirely.
    Form states of abandoned sessions are evicted after form_idle_seconds or once
    more than max_forms are kept, and their previews are released with them.
    """
    if analyzer is None or store is None:
        settings = settings or load_settings()
        if analyzer is None:
            analyzer = AnalysisClient.from_settings(settings)
        if store is None:
            store = ProjectStore.from_client(
                create_supabase_client(settings.supabase_url, settings.supabase_anon_key)
            )

    app = Flask(__name__)
    app.secret_key = (settings.secret_key if settings else None) or os.environ.get("FLASK_SECRET_KEY") or os.urandom(32)
    app.logger.setLevel(logging.INFO)
    app.config["MAX_CONTENT_LENGTH"] = 16 * 1024 * 1024  # 16MB max request size

    previews = PreviewRegistry()
    forms = FormSessionStore(
        max_forms=max_forms,
        idle_seconds=form_idle_seconds,
        on_evict=lambda form_id: previews.release_prefix(f"{form_id}:"),
    )
    runner = SubmissionRunner(analyzer, store)
    app.extensions["intake"] = {"forms": forms, "previews": previews, "runner": runner}

    def current_form_id() -> str:
        form_id = session.get("form_id")
        if not form_id:
            form_id = uuid.uuid4().hex
            session["form_id"] = form_id
        return form_id

    def current_form() -> FormState:
        return forms.get_or_create(current_form_id())

    def collect_uploads(state: FormState) -> bool:
        """Store any files posted with the form into their sequences. False if a file was rejected."""
        ok = True
        for name in IMAGE_FIELDS:
            uploads = [f for f in request.files.getlist(name) if f and f.filename]
            rejected = [f.filename for f in uploads if not allowed_file(f.filename)]
            state.add_attachments(
                name, [Attachment.from_upload(f) for f in uploads if allowed_file(f.filename)]
            )
            if rejected:
                state.errors[name] = UNSUPPORTED_IMAGE.format(filename=", ".join(rejected))
                ok = False
        return ok

    def render_form(state: FormState, status: int = 200):
        form_id = current_form_id()
        preview_tokens = {
            name: previews.sync(f"{form_id}:{name}", state.attachments(name))
            for name in IMAGE_FIELDS
        }
        return render_template(
            "form.html",
            data=state.data,
            errors=state.errors,
            form_error=state.form_error,
            previews=preview_tokens,
            can_add={name: state.can_add(name) for name in IMAGE_FIELDS},
            states=BRAZILIAN_STATES,
            max_images=MAX_IMAGES,
        ), status

    @app.route("/")
    def index():
        if session.get("submitted"):
            return render_template("confirmation.html")
        # a blank form is not stored until the user posts something
        return render_form(forms.get(current_form_id()) or FormState())

    @app.route("/", methods=["POST"])
    def submit():
        """Save posted fields and files, then run the submission pipeline."""
        state = current_form()
        state.update_fields(request.form)
        if not collect_uploads(state):
            return render_form(state)

        result = runner.submit(state)
        if result.succeeded:
            form_id = current_form_id()
            forms.discard(form_id)
            previews.release_prefix(f"{form_id}:")
            session["submitted"] = True
            app.logger.info(f"✅ Submission {result.submission_id} completed")
            return redirect(url_for("index"))

        if result.message:
            app.logger.warning(f"Submission {result.submission_id} failed: {result.message}")
        return render_form(state)

    @app.route("/images", methods=["POST"])
    def add_images():
        """Keep typed values and add the selected images without submitting."""
        state = current_form()
        state.update_fields(request.form)
        collect_uploads(state)
        return render_form(state)

    @app.route("/attachments/<name>/<int:index>/remove", methods=["POST"])
    def remove_attachment(name: str, index: int):
        if name not in IMAGE_FIELDS:
            abort(404)
        state = current_form()
        state.update_fields(request.form)
        state.remove_attachment(name, index)
        return render_form(state)

    @app.route("/preview/<token>")
    def preview(token: str):
        found = previews.get(token)
        if found is None:
            abort(404)
        mimetype, data = found
        return send_file(io.BytesIO(data), mimetype=mimetype)

    @app.route("/reset", methods=["POST"])
    def reset():
        """Start a new, empty form after a confirmation."""
        form_id = current_form_id()
        forms.discard(form_id)
        previews.release_prefix(f"{form_id}:")
        session.pop("submitted", None)
        return redirect(url_for("index"))

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app_settings = load_settings()
    app = create_app(app_settings)
    app.run(host="0.0.0.0", port=app_settings.port, debug=False)
