import asyncio
import uuid
from datetime import datetime, UTC
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.dependencies import require_user
from app.exceptions import LetterLimitExceededError, NotFoundError
from app.models.letter import Letter, LetterStatus
from app.schemas.letter import LetterForm
from app.services.letter_service import LetterService, letter_service, letter_title, render_letter

FORM = {
    "sender_name": "Jane Doe",
    "sender_address": "12 Oak Street",
    "sender_city": "Austin",
    "sender_state": "TX",
    "sender_zip": "73301",
    "sender_phone": "512-555-0100",
    "sender_email": "jane@example.com",
    "recipient_name": "Acme Corp",
    "recipient_address": "500 Market Street",
    "recipient_city": "Dallas",
    "recipient_state": "TX",
    "recipient_zip": "75201",
    "subject": "Unpaid invoice #1042",
    "category": "debt_retrieval",
    "details": "Invoice #1042 for consulting services delivered in March remains unpaid.",
}

LETTER_ID = "9d7c8f40-5d4a-4d8e-b0a4-1f4c2c7e9a11"


def letter_row(**overrides):
    row = {
        "id": LETTER_ID,
        "user_id": "user-1",
        "title": "Debt Retrieval: Unpaid invoice #1042",
        "content": "letter body",
        "category": "debt_retrieval",
        "status": "generated",
        "created_at": datetime(2024, 3, 1, tzinfo=UTC),
        "updated_at": datetime(2024, 3, 1, tzinfo=UTC),
    }
    row.update(overrides)
    return row


class TestRender:
    def test_debt_letter_uses_defaults_for_missing_amount(self):
        form = LetterForm(**FORM)

        content = render_letter(form, date=datetime(2024, 3, 5, tzinfo=UTC))

        assert content.startswith("Jane Doe\n12 Oak Street\nAustin, TX 73301")
        assert "March 05, 2024" in content
        assert "RE: Unpaid invoice #1042" in content
        assert "Dear Acme Corp," in content
        assert "the sum of the outstanding balance" in content
        assert FORM["details"] in content
        assert content.rstrip().endswith("Jane Doe")

    def test_amount_and_due_date_are_filled_in(self):
        form = LetterForm(**FORM, amount_owed="$2,500.00", due_date="June 30, 2025")

        content = render_letter(form)

        assert "the sum of $2,500.00" in content
        assert "no later than June 30, 2025" in content

    def test_additional_info_is_appended(self):
        form = LetterForm(
            **{**FORM, "category": "cease_desist"}, additional_info="Copies of the posts are attached."
        )

        content = render_letter(form)

        assert "cease and desist" in content
        assert "Copies of the posts are attached." in content

    def test_braces_in_user_text_are_kept_verbatim(self):
        form = LetterForm(**{**FORM, "details": "The contract clause {section 4} was breached."})
        assert "{section 4}" in render_letter(form)

    def test_title_uses_category_name(self):
        assert letter_title(LetterForm(**FORM)) == "Debt Retrieval: Unpaid invoice #1042"


class FakeLetterCursor:
    """Cursor stand-in that applies the quota update and letter insert to memory"""

    def __init__(self, letters_used=0):
        self.letters_used = letters_used
        self.inserted = []
        self.statements = []
        self._result = None

    def execute(self, sql, params):
        self.statements.append((sql, params))
        if sql.strip().startswith("UPDATE users"):
            _, limit = params
            if self.letters_used < limit:
                self.letters_used += 1
                self._result = {"letters_used": self.letters_used}
            else:
                self._result = None
        elif sql.strip().startswith("INSERT INTO letters"):
            self.inserted.append(params)
            self._result = letter_row(id=params[0], user_id=params[1], title=params[2])

    def fetchone(self):
        return self._result


class TestLetterService:
    @pytest.fixture
    def cursor(self):
        return FakeLetterCursor()

    @pytest.fixture
    def db(self, cursor):
        mock = MagicMock()
        mock.fetch_one = AsyncMock(return_value=letter_row())
        mock.fetch_all = AsyncMock(return_value=[])
        mock.execute = AsyncMock(return_value=1)
        mock.transaction = AsyncMock(side_effect=lambda tenant, work: work(cursor))
        return mock

    @pytest.fixture
    def users(self):
        mock = MagicMock()
        mock.find_by_id = AsyncMock()
        return mock

    @pytest.fixture
    def service(self, db, users):
        return LetterService(db=db, users=users)

    @pytest.mark.asyncio
    async def test_requires_subscription(self, service, users, make_user, db):
        users.find_by_id.return_value = make_user(id="user-1", subscription_plan=None)

        with pytest.raises(LetterLimitExceededError) as exc:
            await service.generate_letter("user-1", LetterForm(**FORM))
        assert exc.value.status_code == 403
        assert exc.value.message == "An active subscription is required"
        db.transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_enforces_plan_limit(self, service, users, make_user, db):
        users.find_by_id.return_value = make_user(subscription_plan="premium", letters_used=1)

        with pytest.raises(LetterLimitExceededError, match="Letter limit reached"):
            await service.generate_letter("user-1", LetterForm(**FORM))
        db.transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stores_letter_and_counts_it(self, service, users, make_user, db, cursor):
        users.find_by_id.return_value = make_user(subscription_plan="basic", letters_used=3)
        cursor.letters_used = 3

        letter = await service.generate_letter("user-1", LetterForm(**FORM))

        assert db.transaction.await_args.args[0] == "user"
        (update_sql, update_params), (_, params) = cursor.statements
        assert "COALESCE(letters_used, 0) < %s" in update_sql
        assert update_params == ("user-1", 4)
        assert params[1] == "user-1"
        assert params[2] == "Debt Retrieval: Unpaid invoice #1042"
        assert params[4:] == ("debt_retrieval", "generated")
        assert cursor.letters_used == 4
        assert letter.status == "generated"

    @pytest.mark.asyncio
    async def test_quota_claimed_elsewhere_stores_nothing(self, service, users, make_user, cursor):
        # Profile was read before another request spent the last letter
        users.find_by_id.return_value = make_user(subscription_plan="premium", letters_used=0)
        cursor.letters_used = 1

        with pytest.raises(LetterLimitExceededError, match="Letter limit reached"):
            await service.generate_letter("user-1", LetterForm(**FORM))
        assert cursor.inserted == []

    @pytest.mark.asyncio
    async def test_concurrent_requests_cannot_exceed_plan(self, service, users, make_user, cursor):
        users.find_by_id.return_value = make_user(subscription_plan="premium", letters_used=0)

        results = await asyncio.gather(
            service.generate_letter("user-1", LetterForm(**FORM)),
            service.generate_letter("user-1", LetterForm(**FORM)),
            return_exceptions=True,
        )

        assert sum(isinstance(r, Letter) for r in results) == 1
        assert sum(isinstance(r, LetterLimitExceededError) for r in results) == 1
        assert len(cursor.inserted) == 1
        assert cursor.letters_used == 1

    @pytest.mark.asyncio
    async def test_missing_letter_is_not_found(self, service, db):
        db.fetch_one.return_value = None
        with pytest.raises(NotFoundError):
            await service.get_letter("user-1", "missing")

    @pytest.mark.asyncio
    async def test_delete_scoped_to_owner(self, service, db):
        db.execute.return_value = 0
        with pytest.raises(NotFoundError):
            await service.delete_letter("user-1", "someone-elses")
        assert db.execute.await_args.args[2] == ("someone-elses", "user-1")


class TestLetterRoutes:
    @pytest.fixture(autouse=True)
    def authenticated(self, client, as_current_user):
        client.app.dependency_overrides[require_user] = as_current_user()

    def test_categories_are_public(self, client):
        client.app.dependency_overrides = {}
        response = client.get("/api/letters/categories")
        assert response.status_code == 200
        categories = response.json()["data"]["categories"]
        assert len(categories) == 10
        assert {"id": "cease_desist", "name": "Cease & Desist"}.items() <= categories[6].items()

    def test_plans(self, client):
        response = client.get("/api/letters/plans")
        plans = {plan["id"]: plan for plan in response.json()["data"]["plans"]}
        assert plans["basic"]["price"] == 199
        assert plans["basic"]["letters_limit"] == 4
        assert plans["premium"]["name"] == "One-Time Plan"
        assert plans["professional"]["letters_limit"] == 8

    def test_generate(self, client, monkeypatch):
        generate = AsyncMock(return_value=Letter(**letter_row()))
        monkeypatch.setattr(letter_service, "generate_letter", generate)

        response = client.post("/api/letters", json=FORM)

        assert response.status_code == 201
        assert response.json()["data"]["letter"]["title"] == "Debt Retrieval: Unpaid invoice #1042"
        assert generate.await_args.args[0] == "user-1"

    def test_generate_without_plan_is_forbidden(self, client, monkeypatch):
        monkeypatch.setattr(
            letter_service,
            "generate_letter",
            AsyncMock(side_effect=LetterLimitExceededError("An active subscription is required")),
        )

        response = client.post("/api/letters", json=FORM)

        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "message": "An active subscription is required",
        }

    def test_generate_rejects_unknown_category(self, client):
        response = client.post("/api/letters", json={**FORM, "category": "parking_tickets"})
        assert response.status_code == 400

    def test_get_missing_letter(self, client, monkeypatch):
        monkeypatch.setattr(
            letter_service, "get_letter", AsyncMock(side_effect=NotFoundError("Letter not found"))
        )
        response = client.get(f"/api/letters/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["message"] == "Letter not found"

    def test_update_status(self, client, monkeypatch):
        update = AsyncMock(return_value=Letter(**letter_row(status="downloaded")))
        monkeypatch.setattr(letter_service, "update_status", update)

        response = client.patch(f"/api/letters/{LETTER_ID}/status", json={"status": "downloaded"})

        assert response.status_code == 200
        assert response.json()["data"]["letter"]["status"] == "downloaded"
        update.assert_awaited_once_with("user-1", LETTER_ID, LetterStatus.DOWNLOADED)

    def test_delete(self, client, monkeypatch):
        delete = AsyncMock(return_value=None)
        monkeypatch.setattr(letter_service, "delete_letter", delete)
        response = client.delete(f"/api/letters/{LETTER_ID}")
        assert response.json()["message"] == "Letter deleted successfully"
        delete.assert_awaited_once_with("user-1", LETTER_ID)

    @pytest.mark.parametrize("method", ["get", "delete"])
    def test_malformed_letter_id_is_rejected(self, client, monkeypatch, method):
        monkeypatch.setattr(letter_service, "get_letter", AsyncMock())
        monkeypatch.setattr(letter_service, "delete_letter", AsyncMock())

        response = getattr(client, method)("/api/letters/abc")

        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"
        letter_service.get_letter.assert_not_awaited()
        letter_service.delete_letter.assert_not_awaited()
