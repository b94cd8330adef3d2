"""Broadcast hub: fan-out des événements de changement vers les connexions temps réel.

Usage:
    hub = BroadcastHub()

    # dans la connexion websocket (coroutine):
    subscriber = hub.connect()
    hub.subscribe(subscriber, "tasks")
    event = await subscriber.queue.get()   # None = fin de la connexion

    # dans un router, après la mutation:
    hub.publish("tasks", {"type": "task_deleted", "id": task_id})

publish() peut être appelé depuis n'importe quel thread (les routes sync tournent
dans le threadpool). Il ne bloque jamais: chaque abonné a sa propre file bornée.
"""

import asyncio
import logging
import threading
import uuid
from typing import Dict, Optional, Set

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100


class Subscriber:
    """Un abonné = une connexion, une file FIFO liée à la boucle asyncio de la connexion."""

    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int = DEFAULT_QUEUE_SIZE):
        self.id = uuid.uuid4().hex[:12]
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.topics: Set[str] = set()
        self.closed = False

    def offer(self, payload: Optional[dict]) -> bool:
        """Dépose un payload sans attendre. False si l'abonné est mort."""
        if self.closed:
            return False
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self.loop:
            self._put(payload)
        else:
            try:
                self.loop.call_soon_threadsafe(self._put, payload)
            except RuntimeError:
                # boucle fermée: la connexion n'existe plus
                self.closed = True
                return False
        return True

    def _put(self, payload: Optional[dict]) -> None:
        if self.closed and payload is not None:
            return
        try:
            self.queue.put_nowait(payload)
        except asyncio.QueueFull:
            # consommateur trop lent: on vide la file et on ferme, le client resynchronise
            logger.warning("Subscriber %s queue full, dropping connection", self.id)
            self.closed = True
            while not self.queue.empty():
                self.queue.get_nowait()
            self.queue.put_nowait(None)

    def close(self) -> None:
        if not self.closed:
            self.offer(None)
            self.closed = True


class BroadcastHub:
    """Ensemble des abonnés par topic. Ne garde aucune donnée de tâche."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._lock = threading.RLock()
        self._topics: Dict[str, Set[Subscriber]] = {}
        self._subscribers: Dict[str, Subscriber] = {}

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def topic_size(self, topic: str) -> int:
        with self._lock:
            return len(self._topics.get(topic, ()))

    def connect(self, loop: asyncio.AbstractEventLoop = None) -> Subscriber:
        """Crée un abonné pour la boucle courante (à appeler depuis la coroutine de la connexion)."""
        subscriber = Subscriber(loop or asyncio.get_running_loop(), maxsize=self.queue_size)
        with self._lock:
            self._subscribers[subscriber.id] = subscriber
        logger.info("Subscriber %s connected (%d total)", subscriber.id, self.subscriber_count)
        return subscriber

    def subscribe(self, subscriber: Subscriber, topic: str) -> None:
        with self._lock:
            self._subscribers.setdefault(subscriber.id, subscriber)
            self._topics.setdefault(topic, set()).add(subscriber)
            subscriber.topics.add(topic)

    def unsubscribe(self, subscriber: Subscriber, topic: str) -> None:
        with self._lock:
            members = self._topics.get(topic)
            if members is not None:
                members.discard(subscriber)
                if not members:
                    del self._topics[topic]
            subscriber.topics.discard(topic)

    def disconnect(self, subscriber: Subscriber) -> None:
        """Retire l'abonné de tous ses topics. Idempotent."""
        with self._lock:
            for topic in list(subscriber.topics):
                self.unsubscribe(subscriber, topic)
            known = self._subscribers.pop(subscriber.id, None)
        subscriber.closed = True
        if known is not None:
            logger.info("Subscriber %s disconnected (%d left)", subscriber.id, self.subscriber_count)

    def publish(self, topic: str, event) -> int:
        """Envoie `event` à chaque abonné du topic. Retourne le nombre d'abonnés servis.

        La diffusion se fait sous le verrou pour que tous les abonnés d'un topic
        voient ses événements dans le même ordre; aucune étape ne bloque.
        """
        payload = event.model_dump(mode="json", by_alias=True) if isinstance(event, BaseModel) else event
        sent = 0
        dead = []
        with self._lock:
            for subscriber in self._topics.get(topic, ()):
                try:
                    delivered = subscriber.offer(payload)
                except Exception:
                    logger.exception("Delivery to subscriber %s failed", subscriber.id)
                    delivered = False
                if delivered:
                    sent += 1
                else:
                    dead.append(subscriber)
            for subscriber in dead:
                self.disconnect(subscriber)
        if dead:
            logger.warning("Dropped %d dead subscriber(s) on topic %s", len(dead), topic)
        logger.debug("Published %s on %s to %d subscriber(s)", payload.get("type"), topic, sent)
        return sent

    def close_all(self) -> None:
        """Ferme toutes les connexions (arrêt de l'application)."""
        with self._lock:
            subscribers = list(self._subscribers.values())
            for subscriber in subscribers:
                subscriber.close()
                self.disconnect(subscriber)
