# ui_app.py
import os

import requests
from flask import Flask, flash, jsonify, redirect, render_template, request, url_for

from enrich_core import LEGENDS_PATH, LEGENDS_RAW_PATH, pending_legends, run_enrichment
from legends_store import LegendError, load_results, load_worklist

app = Flask(__name__)
app.secret_key = os.getenv("FLASK_SECRET_KEY", "dev")  # for flash messages
app.config.update(LEGENDS_RAW_PATH=LEGENDS_RAW_PATH, LEGENDS_PATH=LEGENDS_PATH)


def _pending_count(results):
    try:
        worklist = load_worklist(app.config["LEGENDS_RAW_PATH"])
    except (LegendError, OSError):
        return None
    return len(pending_legends(worklist, results))


@app.get("/")
def index():
    # How many rows to show (default 25). You can change via /?n=100 etc.
    try:
        limit = max(1, min(int(request.args.get("n", "25")), 500))
    except ValueError:
        limit = 25
    legends = load_results(app.config["LEGENDS_PATH"])
    return render_template(
        "index.html",
        legends=legends[-limit:],
        done=len(legends),
        pending=_pending_count(legends),
        limit=limit,
    )


@app.get("/legends.json")
def legends_json():
    return jsonify(load_results(app.config["LEGENDS_PATH"]))


@app.post("/run-now")
def run_now():
    try:
        new = run_enrichment(app.config["LEGENDS_RAW_PATH"], app.config["LEGENDS_PATH"])
    except (LegendError, requests.RequestException, OSError) as e:
        flash(f"Run stopped: {type(e).__name__}: {e}. Progress so far is saved.")
    else:
        if new:
            flash(f"Enriched {len(new)} legend(s).")
        else:
            flash("All caught up, nothing pending.")
    return redirect(url_for("index"))


if __name__ == "__main__":
    # pip install flask
    app.run(host="127.0.0.1", port=5000, debug=False)
