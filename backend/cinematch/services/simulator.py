from __future__ import annotations

import asyncio
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Coroutine, List, Optional, Set

from cinematch.api.schemas.simulation import (
    AnalysisResult,
    CastingSuggestion,
    Shot,
    ShotStatus,
    SimulationView,
    VideoState,
    VideoStatus,
    ViewName,
)
from cinematch.content import actor_image
from cinematch.core.logger import log_exc, log_info
from cinematch.services.studio import GeminiStudio


@dataclass
class Simulation:
    """Transient state of one script run: the input, processing and results views."""

    script: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    view: ViewName = ViewName.INPUT
    processing_step: int = 0
    analysis: Optional[AnalysisResult] = None
    shots: List[Shot] = field(default_factory=list)
    video_status: VideoStatus = VideoStatus.IDLE
    video_bytes: Optional[bytes] = None
    video_mime: Optional[str] = None
    run: int = 0
    tasks: Set[asyncio.Task] = field(default_factory=set, repr=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def clear_results(self) -> None:
        self.analysis = None
        self.shots = []
        self.video_status = VideoStatus.IDLE
        self.video_bytes = None
        self.video_mime = None

    @property
    def video_url(self) -> Optional[str]:
        if self.video_status is not VideoStatus.READY:
            return None
        return f"/simulations/{self.id}/video"

    def to_view(self) -> SimulationView:
        return SimulationView(
            id=self.id,
            view=self.view,
            processing_step=self.processing_step,
            script=self.script,
            analysis=self.analysis,
            shots=[s.model_copy() for s in self.shots],
            video=VideoState(status=self.video_status, url=self.video_url, mime_type=self.video_mime),
            created_at=self.created_at,
        )


class SimulationStore:
    """In-memory simulations, oldest evicted once capacity is reached."""

    def __init__(self, capacity: int = 200):
        self.capacity = max(1, capacity)
        self._items: "OrderedDict[str, Simulation]" = OrderedDict()

    def create(self, script: str) -> Simulation:
        sim = Simulation(script=script)
        self._items[sim.id] = sim
        while len(self._items) > self.capacity:
            self._items.popitem(last=False)
        return sim

    def get(self, sim_id: str) -> Simulation:
        return self._items[sim_id]

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, sim_id: object) -> bool:
        return sim_id in self._items


class Simulator:
    """
    Runs a script through the studio: blocking analysis first, then one
    independent image task per shot and a single video task.

    Background completions only land on the run that started them; after a
    reset they are dropped.
    """

    def __init__(self, studio: GeminiStudio, store: SimulationStore):
        self.studio = studio
        self.store = store
        self._tasks: Set[asyncio.Task] = set()

    async def process_script(self, sim: Simulation) -> Simulation:
        sim.run += 1
        run = sim.run
        sim.clear_results()
        sim.view = ViewName.PROCESSING
        sim.processing_step = 1

        try:
            analysis, drafts = await self.studio.analyze_script(sim.script)
        except Exception:
            log_exc(f"ANALYZE failed sim={sim.id}")
            if sim.run == run:
                sim.view = ViewName.INPUT
                sim.processing_step = 0
            raise

        if sim.run != run:
            return sim

        sim.analysis = AnalysisResult(
            **analysis.model_dump(exclude={"casting"}),
            casting=[
                CastingSuggestion(name=c.name, match=c.match, image=actor_image(i))
                for i, c in enumerate(analysis.casting)
            ],
        )
        sim.shots = [Shot(**d.model_dump()) for d in drafts]
        sim.processing_step = 2
        # results are shown while images and video are still loading
        sim.view = ViewName.RESULTS

        for index, shot in enumerate(sim.shots):
            self._spawn(sim, self._generate_shot_image(sim, run, index, shot))
        self._spawn(sim, self._generate_video(sim, run))
        return sim

    def reset(self, sim: Simulation) -> Simulation:
        sim.run += 1
        sim.view = ViewName.INPUT
        sim.processing_step = 0
        sim.clear_results()
        log_info(f"RESET sim={sim.id} run={sim.run}")
        return sim

    async def wait(self, sim: Simulation) -> None:
        while sim.tasks:
            await asyncio.gather(*list(sim.tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        tasks = list(self._tasks)
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ---------------- background work ----------------
    def _spawn(self, sim: Simulation, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        sim.tasks.add(task)
        self._tasks.add(task)
        task.add_done_callback(sim.tasks.discard)
        task.add_done_callback(self._tasks.discard)

    async def _generate_shot_image(self, sim: Simulation, run: int, index: int, shot: Shot) -> None:
        if sim.run != run:
            return
        shot.status = ShotStatus.LOADING
        try:
            url = await self.studio.generate_shot_image(shot)
        except Exception:
            log_exc(f"IMAGE failed sim={sim.id} shot={index}")
            if sim.run == run:
                shot.status = ShotStatus.FAILED
            return
        if sim.run == run:
            shot.image_url = url
            shot.status = ShotStatus.LOADED

    async def _generate_video(self, sim: Simulation, run: int) -> None:
        if sim.run != run:
            return
        sim.video_status = VideoStatus.LOADING
        sim.processing_step = 3
        try:
            data, mime = await self.studio.generate_video(sim.script)
        except Exception:
            log_exc(f"VIDEO failed sim={sim.id}")
            # back to the waiting state, the failure only lands in the log
            if sim.run == run:
                sim.video_status = VideoStatus.IDLE
            return
        if sim.run == run:
            sim.video_bytes = data
            sim.video_mime = mime
            sim.video_status = VideoStatus.READY
