"""
AutoDrive Server  –  Flask + Server-Sent Events
===============================================

Endpoints:
  POST /start        Start (or restart) training with JSON config body
  POST /stop         Stop the running training
  GET  /stream       SSE stream – one event per finished generation
  GET  /status       Current training state as JSON
  GET  /best         Best network of the last finished generation

Run:
  python server.py
  # → http://localhost:5000
"""

import threading
import time
import queue
import json

from flask import Flask, Response, request, jsonify

from simulation import Simulation
from storage import BrainStore
from neural_network import network_to_dict
from main import validate_settings
from config import (POPULATION, MAX_TICKS_PER_GEN,
                    MAX_GENERATIONS, BRAIN_STORE_PATH)

# ──────────────────────────────────────────────────────────────────────────────
app = Flask(__name__)

# Global training state
_sim_thread:  threading.Thread | None = None
_stop_event   = threading.Event()
_gen_queue    = queue.Queue(maxsize=200)   # holds dicts to stream
_sim_status   = {
    "running":    False,
    "generation": 0,
    "cfg":        {},
}
_best_network = None
_status_lock  = threading.Lock()


# ──────────────────────────────────────────────────────────────────────────────
# CORS helper – allow a browser front-end on any origin to call us
# ──────────────────────────────────────────────────────────────────────────────

@app.after_request
def add_cors(response):
    response.headers["Access-Control-Allow-Origin"]  = "*"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    return response

@app.route("/", methods=["OPTIONS"])
@app.route("/<path:p>", methods=["OPTIONS"])
def preflight(p=""):
    return Response(status=200)


# ──────────────────────────────────────────────────────────────────────────────
# Training thread
# ──────────────────────────────────────────────────────────────────────────────

def _build_cfg(data: dict) -> dict:
    """Merge request JSON with defaults and validate it. Raises ValueError."""
    population, mutation_rate, max_speed = validate_settings(
        data.get("population", POPULATION),
        data.get("mutationRate"),
        data.get("maxSpeed"),
    )
    return {
        "population":      population,
        "mutation_rate":   mutation_rate,
        "max_speed":       None if max_speed is None else float(max_speed),
        "max_generations": int(data.get("maxGenerations", MAX_GENERATIONS)),
        "max_ticks":       int(data.get("maxTicks",       MAX_TICKS_PER_GEN)),
        "store_path":      str(data.get("storePath",      BRAIN_STORE_PATH)),
        "fresh":           bool(data.get("fresh",         False)),
        "seed":            data.get("seed"),
    }


def _push(out_q: queue.Queue, payload: dict):
    # Non-blocking put; drop oldest frame if queue full
    if out_q.full():
        try:
            out_q.get_nowait()
        except queue.Empty:
            pass
    out_q.put(payload)


def _is_current(stop_evt: threading.Event) -> bool:
    # a replaced worker keeps running until it notices its stop flag
    return stop_evt is _stop_event


def _run_one_generation(sim: Simulation, stop_evt: threading.Event):
    """Tick until die-off, the tick cap or a stop request. None if stopped."""
    t0 = time.time()
    while not sim.all_damaged and sim.tick < sim.max_ticks:
        if stop_evt.is_set():
            return None
        sim.step()
    stats = sim.next_generation()
    stats["elapsed_s"] = round(time.time() - t0, 3)
    return stats


def _sim_worker(cfg: dict, stop_evt: threading.Event, out_q: queue.Queue):
    """Run training in a background thread; push each generation into queue."""
    global _best_network

    store = BrainStore(cfg["store_path"])
    sim = Simulation(
        population      = cfg["population"],
        mutation_rate   = cfg["mutation_rate"],
        max_speed       = cfg["max_speed"],
        max_generations = cfg["max_generations"],
        max_ticks       = cfg["max_ticks"],
        store           = None if cfg["fresh"] else store,
        seed            = cfg["seed"],
    )
    sim.store = store

    with _status_lock:
        if _is_current(stop_evt):
            _sim_status["running"]    = True
            _sim_status["generation"] = sim.generation

    try:
        for _ in range(cfg["max_generations"]):
            cars = sim.cars
            stats = _run_one_generation(sim, stop_evt)
            if stats is None:
                break
            best = cars[stats["best_index"]]

            with _status_lock:
                if _is_current(stop_evt):
                    _sim_status["generation"] = sim.generation
                    _best_network = best.brain.copy()

            _push(out_q, {
                "type":    "generation",
                "stats":   stats,
                "bestCar": best.snapshot(),
                "context": sim.context.to_dict(),
            })
    finally:
        with _status_lock:
            if _is_current(stop_evt):
                _sim_status["running"] = False
        out_q.put({"type": "done", "gen": sim.generation})


# ──────────────────────────────────────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────────────────────────────────────

@app.route("/start", methods=["POST"])
def start():
    global _sim_thread, _stop_event, _gen_queue

    try:
        cfg = _build_cfg(request.get_json(force=True, silent=True) or {})
    except (TypeError, ValueError) as e:
        return jsonify({"status": "error", "error": str(e)}), 400

    # Stop any running training
    _stop_event.set()
    if _sim_thread and _sim_thread.is_alive():
        _sim_thread.join(timeout=3)

    _gen_queue  = queue.Queue(maxsize=200)
    with _status_lock:
        _stop_event = threading.Event()
        _sim_status["generation"] = 0
        _sim_status["running"]    = False
        _sim_status["cfg"]        = cfg

    _sim_thread = threading.Thread(
        target=_sim_worker,
        args=(cfg, _stop_event, _gen_queue),
        daemon=True,
    )
    _sim_thread.start()
    return jsonify({"status": "started", "cfg": cfg})


@app.route("/stop", methods=["POST"])
def stop():
    _stop_event.set()
    return jsonify({"status": "stopped"})


@app.route("/status", methods=["GET"])
def status():
    with _status_lock:
        return jsonify(dict(_sim_status))


@app.route("/best", methods=["GET"])
def best():
    with _status_lock:
        net = _best_network
    if net is None:
        return jsonify({"status": "empty"}), 404
    return jsonify(network_to_dict(net))


@app.route("/stream", methods=["GET"])
def stream():
    """SSE endpoint – browser subscribes and receives each generation as an event."""

    def event_gen():
        yield "data: {\"type\": \"connected\"}\n\n"

        while True:
            try:
                payload = _gen_queue.get(timeout=1)
                yield f"data: {json.dumps(payload)}\n\n"
                if payload.get("type") == "done":
                    break
            except queue.Empty:
                # Keep-alive ping
                yield "data: {\"type\": \"ping\"}\n\n"

    return Response(
        event_gen(),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",    # disable nginx buffering if behind proxy
        },
    )


# ──────────────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    print("=" * 50)
    print("  AutoDrive Server  →  http://localhost:5000")
    print("  SSE stream        →  http://localhost:5000/stream")
    print("=" * 50)
    app.run(host="0.0.0.0", port=5000, threaded=True, debug=False)
