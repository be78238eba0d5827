import pytest

import app as app_module


class _Task:
    def __init__(self, delay, fn):
        self.delay = delay
        self.fn = fn
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Garde les tâches planifiées ; le test décide quand les lancer."""

    def __init__(self):
        self.tasks = []

    def schedule(self, delay, fn):
        task = _Task(delay, fn)
        self.tasks.append(task)
        return task

    def run_all(self, include_cancelled=False):
        tasks, self.tasks = self.tasks, []
        for task in tasks:
            if include_cancelled or not task.cancelled:
                task.fn()


class SequenceRandom:
    """Source aléatoire qui renvoie une suite d'indices fixée à l'avance."""

    def __init__(self, values):
        self.values = list(values)

    def randrange(self, n):
        v = self.values.pop(0)
        assert 0 <= v < n
        return v


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def seq_rng():
    return SequenceRandom


@pytest.fixture
def client():
    app_module.app.config.update(
        TESTING=True,
        SCHEDULER="immediate",
        OPPONENT_DELAY=0,
        OPPONENT_URL="",
        MAX_GAMES=1000,
    )
    app_module.GAMES.clear()
    for k in app_module.STATS:
        app_module.STATS[k] = 0
    with app_module.app.test_client() as c:
        yield c
