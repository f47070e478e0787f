"""
HTTP / SSE / WebSocket 接口测试
"""
import json
import logging
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from chainlab.main import create_app
from chainlab.workflows.rewriter import create_rewriter_workflow
from chainlab.workflows.state import OTHER_SCENARIO_ANSWER


class StubWorkflow:
    def __init__(self, chunks=None, error=None):
        self.chunks = chunks or []
        self.error = error
        self.queries = []

    async def stream(self, query, config=None):
        self.queries.append(query)
        for chunk in self.chunks:
            yield chunk
        if self.error:
            raise self.error


@pytest.fixture
def make_client(test_settings, chat_store):
    def _make(workflow=None):
        app = create_app(workflow=workflow or StubWorkflow(["你好", "世界"]), store=chat_store, settings=test_settings)
        return TestClient(app)
    return _make


class TestChatEndpoint:
    """POST /api/chat"""

    def test_sse_stream(self, make_client):
        workflow = StubWorkflow(["你好", "世界"])
        client = make_client(workflow)
        response = client.post("/api/chat", json={"message": "问题"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.text == "data: 你好\n\ndata: 世界\n\n"
        assert workflow.queries == ["问题"]

    def test_empty_message(self, make_client):
        response = make_client().post("/api/chat", json={"message": ""})
        assert response.status_code == 400
        assert response.json()["detail"] == "消息不能为空"

    def test_stream_error_emits_error_event(self, make_client):
        client = make_client(StubWorkflow(["部分"], error=RuntimeError("boom")))
        response = client.post("/api/chat", json={"message": "问题"})
        assert response.text.startswith("data: 部分\n\n")
        assert "data: [ERROR]" in response.text

    def test_real_workflow_stream(self, make_client, fake_llm_factory):
        workflow = create_rewriter_workflow("intent", fake_llm_factory("valid", "改写", "其他"))
        response = make_client(workflow).post("/api/chat", json={"message": "天气"})
        assert response.text == f"data: {OTHER_SCENARIO_ANSWER}\n\n"


class TestHistoryEndpoints:
    """聊天记录接口"""

    def test_save_list_and_get(self, make_client):
        client = make_client()
        messages = [{"role": "user", "content": "第一句"}, {"role": "assistant", "content": "回复"}]

        response = client.post("/api/history", json={"id": "chat_1", "messages": messages})
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

        assert client.get("/api/history").json() == [{"id": "chat_1", "title": "第一句"}]

        response = client.get("/api/history/chat_1")
        assert response.status_code == 200
        assert response.json() == messages

    def test_save_requires_id_and_messages(self, make_client):
        client = make_client()
        assert client.post("/api/history", json={"id": "", "messages": []}).status_code == 400
        assert client.post(
            "/api/history",
            json={"id": "x", "messages": []},
        ).status_code == 400

    def test_save_rejects_path_id(self, make_client):
        response = make_client().post(
            "/api/history",
            json={"id": "..", "messages": [{"role": "user", "content": "a"}]},
        )
        assert response.status_code == 400

    def test_missing_history(self, make_client):
        response = make_client().get("/api/history/missing")
        assert response.status_code == 404
        assert response.json()["detail"] == "聊天记录不存在"

    def test_empty_list(self, make_client):
        assert make_client().get("/api/history").json() == []

    def test_list_skips_bad_files(self, make_client, chat_store):
        chat_store.base_dir.mkdir(parents=True, exist_ok=True)
        (chat_store.base_dir / "bad.json").write_bytes(b"\xff\xfe[garbage")
        (chat_store.base_dir / "null.json").write_text('[{"role": "user", "content": null}]', encoding="utf-8")

        response = make_client().get("/api/history")
        assert response.status_code == 200
        assert response.json() == []

    def test_nul_id_rejected(self, make_client):
        response = make_client().get("/api/history/bad%00id")
        assert response.status_code == 400


class TestMiscEndpoints:
    """健康检查与重定向"""

    def test_health(self, make_client):
        assert make_client().get("/api/health").json() == {"status": "ok"}

    def test_providers(self, make_client):
        names = [item["name"] for item in make_client().get("/api/providers").json()]
        assert names == ["openai", "ark"]

    def test_chat_path_redirects(self, make_client):
        response = make_client().get("/chat/some/page", follow_redirects=False)
        assert response.status_code == 301
        assert response.headers["location"] == "/"

    def test_static_files_served(self, test_settings, chat_store, tmp_path):
        static_dir = tmp_path / "static"
        static_dir.mkdir()
        (static_dir / "index.html").write_text("<html>chainlab</html>", encoding="utf-8")
        app = create_app(workflow=StubWorkflow(), store=chat_store, settings=test_settings)
        response = TestClient(app).get("/")
        assert response.status_code == 200
        assert "chainlab" in response.text


class TestWebSocket:
    """/ws 命令"""

    def _send(self, ws, kind, payload=None):
        ws.send_text(json.dumps({"type": kind, "payload": payload}))
        return ws.receive_json()

    def test_chat_stream(self, make_client):
        with make_client().websocket_connect("/ws") as ws:
            ws.send_text(json.dumps({"type": "chat", "payload": {"message": "问题"}}))
            assert ws.receive_json() == {"type": "chat_chunk", "content": "你好"}
            assert ws.receive_json() == {"type": "chat_chunk", "content": "世界"}
            assert ws.receive_json() == {"type": "chat_end"}

    def test_chat_error_then_end(self, make_client):
        with make_client(StubWorkflow(error=RuntimeError("boom"))).websocket_connect("/ws") as ws:
            ws.send_text(json.dumps({"type": "chat", "payload": {"message": "问题"}}))
            assert ws.receive_json()["type"] == "error"
            assert ws.receive_json() == {"type": "chat_end"}

    def test_empty_chat_message(self, make_client):
        with make_client().websocket_connect("/ws") as ws:
            frame = self._send(ws, "chat", {"message": ""})
            assert frame == {"type": "error", "message": "消息不能为空"}

    def test_save_history_and_load(self, make_client):
        messages = [{"role": "user", "content": "你好"}, {"role": "assistant", "content": "你好！"}]
        with make_client().websocket_connect("/ws") as ws:
            frame = self._send(ws, "save", {"id": "chat_ws", "messages": messages})
            assert frame == {"type": "save_success", "message": "聊天记录保存成功"}

            frame = self._send(ws, "history")
            assert frame == {"type": "history_list", "history": [{"id": "chat_ws", "title": "你好"}]}

            frame = self._send(ws, "load", {"id": "chat_ws"})
            assert frame == {"type": "chat_history", "id": "chat_ws", "messages": messages}

    def test_load_errors(self, make_client):
        with make_client().websocket_connect("/ws") as ws:
            assert self._send(ws, "load", {"id": ""})["message"] == "缺少聊天ID"
            assert self._send(ws, "load", {"id": "missing"})["message"] == "聊天记录不存在"

    def test_invalid_frames(self, make_client):
        with make_client().websocket_connect("/ws") as ws:
            ws.send_text("not json")
            assert ws.receive_json() == {"type": "error", "message": "无效的消息格式"}

            assert self._send(ws, "unknown")["message"] == "未知的命令类型"
            assert self._send(ws, "chat", "abc")["message"] == "无效的聊天请求格式"
            assert self._send(ws, "save", {"id": 1, "messages": "x"})["message"] == "无效的保存请求格式"
            assert self._send(ws, "load", ["x"])["message"] == "无效的加载请求格式"

    def test_binary_frames_ignored(self, make_client):
        with make_client().websocket_connect("/ws") as ws:
            ws.send_bytes(b"\x00\x01")
            frame = self._send(ws, "history")
            assert frame["type"] == "history_list"

    def test_history_skips_bad_files(self, make_client, chat_store):
        chat_store.base_dir.mkdir(parents=True, exist_ok=True)
        (chat_store.base_dir / "bad.json").write_bytes(b"\xff\xfe[garbage")
        (chat_store.base_dir / "null.json").write_text('[{"role": "user", "content": null}]', encoding="utf-8")
        messages = [{"role": "user", "content": "你好"}]

        with make_client().websocket_connect("/ws") as ws:
            assert self._send(ws, "save", {"id": "chat_ok", "messages": messages})["type"] == "save_success"
            frame = self._send(ws, "history")
            assert frame == {"type": "history_list", "history": [{"id": "chat_ok", "title": "你好"}]}

    def test_workflow_construction_failure(self, test_settings, chat_store):
        app = create_app(store=chat_store, settings=test_settings)
        with TestClient(app).websocket_connect("/ws") as ws:
            with patch("chainlab.api.websocket.get_workflow", side_effect=RuntimeError("no model")):
                ws.send_text(json.dumps({"type": "chat", "payload": {"message": "问题"}}))
                assert ws.receive_json() == {"type": "error", "message": "处理消息时出错"}
                assert ws.receive_json() == {"type": "chat_end"}

            frame = self._send(ws, "history")
            assert frame["type"] == "history_list"

    def test_nul_id_rejected(self, make_client):
        with make_client().websocket_connect("/ws") as ws:
            frame = self._send(ws, "load", {"id": "bad\x00id"})
            assert frame == {"type": "error", "message": "无效的聊天ID"}

    def test_connection_count_logged(self, make_client, caplog):
        with caplog.at_level(logging.INFO, logger="chainlab.api.websocket"):
            with make_client().websocket_connect("/ws") as ws:
                self._send(ws, "history")
        assert "新的WebSocket连接已建立，当前连接数: 1" in caplog.text
