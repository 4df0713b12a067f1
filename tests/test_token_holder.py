import json
import threading

from griffin.client.token_holder import TOKEN_KEY, FileTokenHolder, InMemoryTokenHolder


def test_in_memory_holder_round_trip():
    holder = InMemoryTokenHolder()
    assert holder.get() is None
    holder.set("a")
    holder.set("b")
    assert holder.get() == "b"
    holder.clear()
    assert holder.get() is None


def test_file_holder_persists_under_fixed_key(tmp_path):
    path = tmp_path / "auth.json"
    holder = FileTokenHolder(path)
    holder.set("token-1")

    assert json.loads(path.read_text()) == {TOKEN_KEY: "token-1"}
    assert FileTokenHolder(path).get() == "token-1"

    holder.clear()
    assert not path.exists()
    assert holder.get() is None
    holder.clear()


def test_file_holder_ignores_corrupt_file(tmp_path):
    path = tmp_path / "auth.json"
    path.write_text("{not json")
    assert FileTokenHolder(path).get() is None


def test_racing_writers_leave_one_complete_token(tmp_path):
    path = tmp_path / "nested" / "auth.json"
    holders = [FileTokenHolder(path) for _ in range(8)]
    tokens = [f"token-{i}-" + "x" * 500 for i in range(8)]

    threads = [threading.Thread(target=h.set, args=(t,)) for h, t in zip(holders, tokens)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert FileTokenHolder(path).get() in tokens
    leftovers = [p for p in path.parent.iterdir() if p.name != "auth.json"]
    assert leftovers == []
