import threading
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from globe_tracker.illumination import DAY_NIGHT_SHADER
from globe_tracker.time_controller import TimeInputError

app = FastAPI()

# Shared with the frame loop: the simulation it steps
tracker_state = {
    'simulation': None,
}


class TimeRequest(BaseModel):
    value: str


class GlobeRotation(BaseModel):
    lng: float
    lat: float


def _simulation():
    sim = tracker_state['simulation']
    if sim is None:
        raise HTTPException(status_code=503, detail="Simulation not running")
    return sim


def _candidate(record, sim):
    return {
        "id": record.norad_id,
        "name": record.name,
        "color": record.display_color,
        "selected": sim.catalog.is_selected(record.norad_id),
    }


@app.get("/api/frame")
def get_frame():
    sim = _simulation()
    frame = sim.last_frame or sim.step()
    return frame.as_dict()


@app.get("/api/shader")
def get_shader():
    sim = _simulation()
    frame = sim.last_frame or sim.step()
    return {
        "vertex": DAY_NIGHT_SHADER["vertexShader"],
        "fragment": DAY_NIGHT_SHADER["fragmentShader"],
        "uniforms": frame.uniforms(),
    }


@app.post("/api/time")
def request_time(body: TimeRequest):
    sim = _simulation()
    try:
        accepted = sim.request_time(body.value)
    except TimeInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"status": "ok", "accepted": accepted, "target": sim.time.target_time}


@app.post("/api/realtime")
def toggle_real_time():
    mode = _simulation().toggle_real_time()
    return {"status": "ok", "mode": mode.value}


@app.post("/api/globe-rotation")
def set_globe_rotation(body: GlobeRotation):
    _simulation().set_globe_rotation(body.lng, body.lat)
    return {"status": "ok"}


@app.get("/api/candidates")
def get_candidates(q: Optional[str] = None):
    sim = _simulation()
    with sim.lock:
        if q is not None:
            sim.catalog.set_filter(q)
        return {"candidates": [_candidate(r, sim) for r in sim.catalog.candidates()]}


@app.post("/api/select/{norad_id}")
def select_satellite(norad_id: int):
    sim = _simulation()
    with sim.lock:
        if norad_id not in sim.catalog:
            raise HTTPException(status_code=404, detail=f"Unknown satellite {norad_id}")
        selected = sim.catalog.toggle(norad_id)
    return {"status": "ok", "id": norad_id, "selected": selected}


@app.post("/api/select-all")
def select_all(q: Optional[str] = None):
    sim = _simulation()
    with sim.lock:
        sim.catalog.select_all(q)
        return {"status": "ok", "selected": sorted(sim.catalog.selected)}


@app.post("/api/deselect-all")
def deselect_all():
    sim = _simulation()
    with sim.lock:
        sim.catalog.deselect_all()
    return {"status": "ok", "selected": []}


def run_server(host="0.0.0.0", port=8080):
    # Keep uvicorn quiet so the console status screen stays readable
    uvicorn.run(app, host=host, port=port, log_level="warning")


def start_server_thread(host="0.0.0.0", port=8080):
    t = threading.Thread(target=run_server, args=(host, port), daemon=True)
    t.start()
    return t
