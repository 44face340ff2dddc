#!/usr/bin/env python3
"""
Web API wrapper for the schema.org type catalog
Exposes HTTP endpoints for building the catalog as JSON or YAML
"""
import os
import threading
import uuid
from datetime import datetime

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from dotenv import load_dotenv

from type_catalog import INDEX_URL_DEFAULT, CatalogConfig, build_catalog, serialize
from type_models import CatalogError, Classification, OutputFormat

# In-memory job storage, lost on restart
jobs = {}

MIMETYPES = {
	OutputFormat.JSON: "application/json",
	OutputFormat.YAML: "application/yaml",
}

# Load environment variables from .env file
load_dotenv()

app = Flask(__name__)
CORS(app)  # Enable CORS for all routes

INDEX_URL = os.environ.get("CATALOG_INDEX_URL", INDEX_URL_DEFAULT)


def config_from_params(params) -> CatalogConfig:
	"""Build a CatalogConfig from query args or a JSON body; raises ValueError on bad values."""
	return CatalogConfig(
		index_url=params.get("index_url") or INDEX_URL,
		output_format=OutputFormat(params.get("format", OutputFormat.JSON.value)),
		classification=Classification(params.get("catalog", Classification.VOCABULARY_TYPE.value)),
		timeout=int(params.get("timeout", 20)),
	)


@app.route("/health", methods=["GET"])
def health():
	"""Health check endpoint"""
	return jsonify({
		"status": "healthy",
		"service": "Schema Type Catalog",
		"timestamp": datetime.utcnow().isoformat(),
		"index_url": INDEX_URL,
	}), 200


@app.route("/catalog", methods=["GET"])
def catalog_endpoint():
	"""
	Build the catalog synchronously.

	Query parameters:
		format: json | yaml (default json)
		catalog: vocabularies | datatypes (default vocabularies)
		index_url: override the type index page
	"""
	try:
		config = config_from_params(request.args)
	except ValueError as exc:
		return jsonify({"error": f"Invalid parameter: {exc}"}), 400

	try:
		records = build_catalog(config)
	except CatalogError as exc:
		return jsonify({"error": f"Catalog build failed: {exc}"}), 502

	return Response(serialize(records, config.output_format), mimetype=MIMETYPES[config.output_format])


@app.route("/catalog/async", methods=["POST"])
def catalog_async_endpoint():
	"""
	Start a catalog build in the background.

	Request body (JSON, all optional): format, catalog, index_url, timeout

	Returns the job id and the URL to poll for status.
	"""
	data = request.get_json(silent=True) or {}
	try:
		config = config_from_params(data)
	except ValueError as exc:
		return jsonify({"error": f"Invalid parameter: {exc}"}), 400

	job_id = str(uuid.uuid4())
	jobs[job_id] = {
		"status": "running",
		"progress": [],
		"created_at": datetime.utcnow().isoformat(),
		"format": config.output_format,
	}

	def progress_callback(level, message):
		jobs[job_id]["progress"].append({
			"type": level,
			"message": message,
			"timestamp": datetime.utcnow().isoformat(),
		})

	def run_build():
		job = jobs[job_id]
		try:
			records = build_catalog(config, progress_callback=progress_callback)
			job["result"] = serialize(records, config.output_format)
			job["count"] = len(records)
			job["status"] = "completed"
		except CatalogError as exc:
			job["error"] = str(exc)
			job["status"] = "failed"
		except Exception as exc:
			job["error"] = f"Server error: {exc}"
			job["status"] = "failed"
			raise

	thread = threading.Thread(target=run_build, daemon=True)
	thread.start()

	return jsonify({
		"job_id": job_id,
		"status": "running",
		"status_url": f"/catalog/status/{job_id}",
		"result_url": f"/catalog/result/{job_id}",
	}), 202


@app.route("/catalog/status/<job_id>", methods=["GET"])
def catalog_status_endpoint(job_id):
	"""
	Get status and progress of a catalog job.

	Returns:
	- status: "running" | "completed" | "failed"
	- progress: Array of progress messages
	- error: Error message if failed
	"""
	if job_id not in jobs:
		return jsonify({"error": "Job not found"}), 404

	job = jobs[job_id]

	return jsonify({
		"job_id": job_id,
		"status": job["status"],
		"progress": job["progress"],
		"count": job.get("count"),
		"error": job.get("error"),
		"created_at": job["created_at"],
	}), 200


@app.route("/catalog/result/<job_id>", methods=["GET"])
def catalog_result_endpoint(job_id):
	"""
	Get the serialized catalog for a completed job.

	Returns the catalog if completed, 404 if not found, 202 if still running.
	"""
	if job_id not in jobs:
		return jsonify({"error": "Job not found"}), 404

	job = jobs[job_id]

	if job["status"] == "running":
		return jsonify({
			"error": "Job is still running",
			"status": "running",
			"status_url": f"/catalog/status/{job_id}"
		}), 202

	if job["status"] == "failed":
		return jsonify({
			"error": job.get("error", "Job failed"),
			"status": "failed"
		}), 500

	return Response(job["result"], mimetype=MIMETYPES[job["format"]])


@app.errorhandler(404)
def not_found(error):
	return jsonify({"error": "Endpoint not found"}), 404


@app.errorhandler(500)
def internal_error(error):
	return jsonify({"error": "Internal server error"}), 500


if __name__ == "__main__":
	port = int(os.environ.get("PORT", 8000))
	debug = os.environ.get("DEBUG", "false").lower() == "true"

	app.run(host="0.0.0.0", port=port, debug=debug)
