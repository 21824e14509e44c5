"""HTTP trigger for the crawl job (one POST = one job run)."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from flask import Flask, jsonify, request
from flask_cors import CORS

from prompt_crawler.domain.entities import JOB_ALL, JOB_TYPES, STATUS_COMPLETED, JobResult
from prompt_crawler.settings import Settings

log = logging.getLogger(__name__)

JobRunner = Callable[[Settings, str], Awaitable[JobResult]]


def configure_cors(app: Flask) -> Flask:
    # The endpoint is called from the browser UI and from schedulers;
    # preflight is always answered.
    CORS(app, send_wildcard=True, resources={
        r"/*": {
            "origins": "*",
            "methods": ["POST", "OPTIONS"],
            "allow_headers": ["authorization", "x-client-info", "apikey", "content-type"],
        }
    })
    return app


def create_app(settings: Settings | None = None, runner: JobRunner | None = None) -> Flask:
    """
    Build the Flask app.

    `settings` defaults to the environment, read per request so a missing
    DATABASE_URL surfaces as a 500 rather than an import error. `runner`
    defaults to main.build_and_run; tests inject a fake.
    """
    if runner is None:
        from prompt_crawler.main import build_and_run as runner

    app = Flask(__name__)
    configure_cors(app)

    @app.route("/", methods=["POST"])
    @app.route("/crawl", methods=["POST"])
    def trigger_crawl():
        body = request.get_json(silent=True)
        job_type = body.get("jobType", JOB_ALL) if isinstance(body, dict) else JOB_ALL
        if job_type not in JOB_TYPES:
            return jsonify(success=False, error=f"Unknown jobType: {job_type!r}"), 400

        try:
            result = asyncio.run(runner(settings or Settings.from_env(), job_type))
        except Exception as exc:
            log.error("Crawler error: %s", exc, exc_info=True)
            return jsonify(success=False, error=str(exc)), 500

        if result.status != STATUS_COMPLETED:
            return jsonify(success=False, jobId=result.job_id, error=result.error_message), 500

        return jsonify(success=True, jobId=result.job_id, stats=result.stats())

    return app
