"""
Canal temps réel (websocket /ws)

Chaque connexion est abonnée à "tasks" et "pomodoro" dès l'ouverture et
désabonnée à la fermeture. Les messages entrants n'ont pas de sens applicatif:
ils sont loggés puis ignorés.
"""

import logging

import anyio
from fastapi import APIRouter, WebSocket

from app.schemas.event import TASKS_TOPIC, POMODORO_TOPIC
from app.services.broadcast_service import Subscriber

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

TOPICS = (TASKS_TOPIC, POMODORO_TOPIC)


async def _forward(websocket: WebSocket, subscriber: Subscriber):
    # file de l'abonné -> client, None = fermeture demandée par le hub
    try:
        while True:
            payload = await subscriber.queue.get()
            if payload is None:
                await websocket.close()
                return
            await websocket.send_json(payload)
    except anyio.get_cancelled_exc_class():
        raise
    except Exception as e:
        logger.warning(f"Sending to subscriber {subscriber.id} failed: {e}")


async def _drain_inbound(websocket: WebSocket, subscriber: Subscriber):
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return
            content = message.get("text") or message.get("bytes")
            logger.info(f"Ignoring inbound message from {subscriber.id}: {content!r:.200}")
    except anyio.get_cancelled_exc_class():
        raise
    except Exception as e:
        logger.warning(f"Receiving from subscriber {subscriber.id} failed: {e}")


@router.websocket("/ws")
async def realtime(websocket: WebSocket):
    hub = websocket.app.state.hub
    subscriber = hub.connect()
    try:
        # abonné avant accept(): rien de ce qui est publié après l'ouverture n'est manqué
        for topic in TOPICS:
            hub.subscribe(subscriber, topic)
        await websocket.accept()

        # le premier des deux qui se termine (déconnexion, fermeture par le hub) arrête l'autre
        async with anyio.create_task_group() as tg:
            async def run_then_stop(step):
                await step(websocket, subscriber)
                tg.cancel_scope.cancel()

            tg.start_soon(run_then_stop, _drain_inbound)
            tg.start_soon(run_then_stop, _forward)
    finally:
        # synchrone et en premier: rien ne doit pouvoir l'annuler
        hub.disconnect(subscriber)
