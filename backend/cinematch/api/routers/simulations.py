import base64
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile
from starlette import status

from cinematch.api.deps import get_simulator, get_store
from cinematch.api.files import read_upload_text
from cinematch.api.schemas.simulation import RunRequest, ScriptRequest, SimulationView, ViewName
from cinematch.api.utils.text import safe_text
from cinematch.content import ANALYSIS_ERROR
from cinematch.core.config import get_settings
from cinematch.core.logger import log_info
from cinematch.services.simulator import Simulation, SimulationStore, Simulator

router = APIRouter(prefix="/simulations")


# ---- Local helpers -----------------------------------------------------------
def _check_script(script: str, settings) -> str:
    if not safe_text(script):
        raise HTTPException(status_code=400, detail="Script is empty.")
    if len(script.encode("utf-8")) > settings.max_script_bytes():
        raise HTTPException(status_code=413, detail="Script is too large.")
    return script


def _get_simulation(sim_id: str, store: SimulationStore) -> Simulation:
    try:
        return store.get(sim_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Simulation not found.")


async def _run(sim: Simulation, simulator: Simulator) -> SimulationView:
    log_info(f"SIMULATION start sim={sim.id} chars={len(sim.script)}")
    try:
        await simulator.process_script(sim)
    except Exception:
        # view was reset to input; the client shows the alert
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=ANALYSIS_ERROR)
    return sim.to_view()


# ---- Routes ------------------------------------------------------------------
@router.post("", response_model=SimulationView, status_code=status.HTTP_201_CREATED)
async def create_simulation(
    payload: ScriptRequest,
    settings=Depends(get_settings),
    store: SimulationStore = Depends(get_store),
    simulator: Simulator = Depends(get_simulator),
):
    script = _check_script(payload.script, settings)
    return await _run(store.create(script), simulator)


@router.post("/upload", response_model=SimulationView, status_code=status.HTTP_201_CREATED)
async def upload_script(
    file: UploadFile = File(...),
    settings=Depends(get_settings),
    store: SimulationStore = Depends(get_store),
    simulator: Simulator = Depends(get_simulator),
):
    script = await read_upload_text(file, settings.max_script_bytes())
    script = _check_script(script, settings)
    return await _run(store.create(script), simulator)


@router.get("/{sim_id}", response_model=SimulationView)
def get_simulation(sim_id: str, store: SimulationStore = Depends(get_store)):
    return _get_simulation(sim_id, store).to_view()


@router.post("/{sim_id}/reset", response_model=SimulationView)
def reset_simulation(
    sim_id: str,
    store: SimulationStore = Depends(get_store),
    simulator: Simulator = Depends(get_simulator),
):
    sim = _get_simulation(sim_id, store)
    return simulator.reset(sim).to_view()


@router.post("/{sim_id}/run", response_model=SimulationView)
async def rerun_simulation(
    sim_id: str,
    payload: Optional[RunRequest] = None,
    settings=Depends(get_settings),
    store: SimulationStore = Depends(get_store),
    simulator: Simulator = Depends(get_simulator),
):
    sim = _get_simulation(sim_id, store)
    if sim.view is ViewName.PROCESSING:
        raise HTTPException(status_code=409, detail="Simulation is already processing.")
    if payload is not None and payload.script is not None:
        sim.script = _check_script(payload.script, settings)
    return await _run(sim, simulator)


@router.get("/{sim_id}/video")
def get_video(sim_id: str, store: SimulationStore = Depends(get_store)):
    sim = _get_simulation(sim_id, store)
    if sim.video_bytes is None:
        raise HTTPException(status_code=404, detail="Video is not ready.")
    return Response(content=sim.video_bytes, media_type=sim.video_mime or "video/mp4")


@router.get("/{sim_id}/shots/{index}/image")
def get_shot_image(sim_id: str, index: int, store: SimulationStore = Depends(get_store)):
    sim = _get_simulation(sim_id, store)
    if index < 0 or index >= len(sim.shots):
        raise HTTPException(status_code=404, detail="Shot not found.")
    url = sim.shots[index].image_url
    if not url:
        raise HTTPException(status_code=404, detail="Image is not ready.")
    header, _, data = url.partition(",")
    mime = header[len("data:"):].split(";")[0] or "image/png"
    return Response(content=base64.b64decode(data), media_type=mime)
