# backend/app.py
import os
from collections.abc import Mapping
from functools import lru_cache

from flask import Flask, request, jsonify
from flask_cors import CORS
from dotenv import load_dotenv
from werkzeug.middleware.proxy_fix import ProxyFix

from contact.mailer import build_mailer
from contact.models import Submission
from contact.pipeline import ContactPipeline, Outcome
from contact.quota import DailyQuota
from contact.ratelimiter import TokenBucketLimiter
from contact.settings import ContactSettings
from contact.timetoken import FormTimeTokenSigner
from contact.utils import get_secret_key, getenv_bool, getenv_list

# ------------------------------
# 🔐 Environment
# ------------------------------
load_dotenv()

# ------------------------------
# ⚙️ Flask
# ------------------------------
app = Flask(__name__)

# Behind a trusted proxy (Render / CloudFront), take client IP and host from forwarded headers
if os.getenv("TRUST_PROXY", "false").lower() == "true":
    num = int(os.getenv("NUM_PROXIES", "1"))
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=num, x_proto=num, x_host=num, x_port=num)

_cors_origins = getenv_list("CORS_ORIGINS")
if _cors_origins:
    CORS(app, resources={r"/api/*": {"origins": _cors_origins}})

TOO_MANY_REQUESTS = "Too many requests. Please wait a moment and try again."


# ------------------------------
# 🧱 Contact components (built once per process, on first use)
# ------------------------------
@lru_cache(maxsize=1)
def get_settings() -> ContactSettings:
    return ContactSettings.from_env()


@lru_cache(maxsize=1)
def get_rate_limiter() -> TokenBucketLimiter:
    s = get_settings()
    return TokenBucketLimiter(s.rate_burst, s.rate_refill, s.rate_period_seconds)


@lru_cache(maxsize=1)
def get_pipeline() -> ContactPipeline:
    s = get_settings()
    return ContactPipeline(
        token_signer=FormTimeTokenSigner(
            get_secret_key(), min_age=s.token_min_age, max_age=s.token_max_age
        ),
        quota=DailyQuota(retention_days=s.quota_retention_days),
        mailer=build_mailer(s),
        from_email=s.from_email,
        to_email=s.to_email,
        max_per_day=s.max_per_day,
        send_timeout=s.send_timeout,
    )


def get_client_ip():
    # ProxyFix rewrites remote_addr from X-Forwarded-For when TRUST_PROXY=true;
    # raw forwarding headers are client-controlled and never used directly.
    if getenv_bool("TRUST_CF_CONNECTING_IP", False):
        ip = (request.headers.get("CF-Connecting-IP") or "").strip()
        if ip:
            return ip
    return request.remote_addr or "unknown"


@app.get("/healthz")
def healthz():
    return {"ok": True}, 200


# ------------------------------
# 📫 Contact API
# ------------------------------
@app.route("/api/contact/token", methods=["GET"])
def api_contact_token():
    # Issued when the form is displayed; checked again on submit
    return jsonify({"form_time_token": get_pipeline().issue_token()})


@app.route("/api/contact/quota", methods=["GET"])
def api_contact_quota():
    pipeline = get_pipeline()
    return jsonify(pipeline.quota.usage(pipeline.max_per_day))


@app.route("/api/contact", methods=["POST"])
def api_contact():
    # Only accept contact posts for the real domain (blocks direct-origin spam)
    if not get_settings().is_allowed_host(request.host):
        return jsonify({"error": "not_found"}), 404

    ip = get_client_ip()
    limiter = get_rate_limiter()
    if not limiter.try_acquire(ip):
        retry_after = limiter.retry_after(ip)
        return (
            jsonify({"error": TOO_MANY_REQUESTS, "code": "rate_limited"}),
            429,
            {"Retry-After": str(retry_after)},
        )

    data = request.get_json(silent=True)
    if not isinstance(data, Mapping):
        # lists, strings and numbers carry no fields; treat as an empty form
        data = request.form
    decision = get_pipeline().submit(Submission.from_form(data, client_ip=ip))

    if decision.appears_successful:
        return jsonify({"status": "sent", "message": decision.user_message}), 200

    body = {"error": decision.user_message, "code": decision.outcome.value}
    if decision.submission is not None:
        body["draft"] = decision.submission.draft()

    if decision.outcome is Outcome.VALIDATION_FAILED:
        body["errors"] = decision.errors
        return jsonify(body), 400
    if decision.outcome is Outcome.QUOTA_EXCEEDED:
        return jsonify(body), 503

    app.logger.error("contact send failed: %s", decision.cause)
    return jsonify(body), 502


# ------------------------------
# 🚀 Launch (local only)
# ------------------------------
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=True)
