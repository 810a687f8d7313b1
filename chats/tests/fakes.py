from chats.replies import ReplyGenerator
from chats.storage import FileStorage, StoredFile


class FakeReplyGenerator(ReplyGenerator):
    reply = "Hi from bot"
    fail = False
    calls = []

    def generate_reply(self, chat_id, text, history=None):
        FakeReplyGenerator.calls.append((chat_id, text))
        if FakeReplyGenerator.fail:
            raise RuntimeError("generator offline")
        return FakeReplyGenerator.reply

    @classmethod
    def reset(cls):
        cls.reply = "Hi from bot"
        cls.fail = False
        cls.calls = []


class MemoryFileStorage(FileStorage):
    """메모리에 파일을 담는 스토리지. fail_after 번째 저장부터 실패시킬 수 있다."""

    files = {}
    deleted = []
    fail_after = None
    _counter = 0

    def store(self, upload, folder, extension):
        cls = MemoryFileStorage
        if cls.fail_after is not None and len(cls.files) >= cls.fail_after:
            raise OSError("storage unavailable")
        cls._counter += 1
        path = f"{folder}/file{cls._counter}.{extension}"
        cls.files[path] = upload.read()
        upload.seek(0)
        return StoredFile(path=path, id=path)

    def delete(self, path):
        MemoryFileStorage.deleted.append(path)
        MemoryFileStorage.files.pop(path, None)

    def url(self, path):
        return f"/media/{path}"

    @classmethod
    def reset(cls):
        cls.files = {}
        cls.deleted = []
        cls.fail_after = None
        cls._counter = 0
