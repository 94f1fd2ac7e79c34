from fastapi.testclient import TestClient
import pytest

from profitlens.main import app


API = "/api/v1"


@pytest.fixture(scope="module")
def client() -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


def test_healthz(client: TestClient) -> None:
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json()["ok"] is True

    health = client.get(f"{API}/health").json()
    assert health["defaults"]["forecast_max_periods"] == 36


def test_org_profit_accepts_ledger_headers(client: TestClient) -> None:
    response = client.post(
        f"{API}/aggregation/org-profit",
        json={
            "records": [
                {"영업조직팀": "Seoul", "매출액": {"계획": 100, "실적": 90}},
                {"team": "Seoul", "sales": {"plan": 50, "actual": 60}},
                {"영업조직팀": "", "매출액": {"계획": 10, "실적": 10}},
            ]
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert (body["input_rows"], body["output_rows"]) == (3, 1)
    [seoul] = body["items"]
    assert seoul["team"] == "Seoul"
    assert seoul["sales"] == {"plan": 150.0, "actual": 150.0, "diff": 0.0}


def test_breakeven_sentinels_serialize_as_strings(client: TestClient) -> None:
    response = client.post(
        f"{API}/financial/breakeven",
        json={
            "mode": "team",
            "team_contrib": [
                {
                    "영업조직팀": "서울",
                    "영업담당사번": "K1",
                    "매출액": {"실적": 1000},
                    "변동비합계": {"실적": 1200},
                    "판관고정_노무비": {"실적": 100},
                }
            ],
        },
    )
    assert response.status_code == 200
    [item] = response.json()["items"]
    assert item["bep_sales"] == "Infinity"
    assert item["safety_margin_rate"] == "-Infinity"
    assert item["can_break_even"] is False
    assert item["fixed_costs"] == 100.0


def test_breakeven_chart_validates_point_count(client: TestClient) -> None:
    response = client.post(
        f"{API}/financial/breakeven/chart",
        json={"fixed_costs": 200, "variable_cost_ratio": 0.6, "max_revenue": 1000, "points": 1},
    )
    assert response.status_code == 422

    response = client.post(
        f"{API}/financial/breakeven/chart",
        json={"fixed_costs": 200, "variable_cost_ratio": 0.6, "max_revenue": 1000, "points": 3},
    )
    assert [point["revenue"] for point in response.json()] == [0.0, 500.0, 1000.0]


def test_forecast_period_limit(client: TestClient) -> None:
    response = client.post(f"{API}/timeseries/forecast", json={"periods": 100})
    assert response.status_code == 400

    response = client.post(f"{API}/timeseries/forecast", json={})
    assert response.status_code == 200
    assert response.json()["points"] == []


def test_anomaly_multiplier_must_be_positive(client: TestClient) -> None:
    response = client.post(f"{API}/timeseries/anomalies", json={"multiplier": -1})
    assert response.status_code == 400


def test_unrecognized_month_bound(client: TestClient) -> None:
    response = client.post(f"{API}/customers/rfm", json={"date_from": "garbage"})
    assert response.status_code == 400


def test_rep_trend_unknown_person(client: TestClient) -> None:
    response = client.post(f"{API}/scoring/rep-trend", json={"person_id": "nobody"})
    assert response.status_code == 404


def test_customer_concentration_per_rep(client: TestClient) -> None:
    response = client.post(
        f"{API}/scoring/customer-hhi",
        json={
            "sales": [
                {"매출일": "2024-01-05", "매출처": "A", "장부금액": 60, "영업담당자": "K1"},
                {"매출일": "2024-01-09", "매출처": "B", "장부금액": 40, "영업담당자": "K1"},
            ]
        },
    )
    assert response.status_code == 200
    k1 = response.json()["K1"]
    assert k1["hhi"] == pytest.approx(0.52)
    assert k1["risk_level"] == "high"
    assert [item["customer"] for item in k1["customers"]] == ["A", "B"]


@pytest.mark.parametrize("bad_date", ["n/a", "N-A"])
def test_churn_ignores_unparseable_dates(client: TestClient, bad_date: str) -> None:
    response = client.post(
        f"{API}/customers/churn",
        json={"sales": [{"매출일": bad_date, "매출처": "C1", "장부금액": 10}]},
    )
    assert response.status_code == 200
    assert response.json()["customers"] == []


def test_anomaly_multiplier_zero_is_accepted(client: TestClient) -> None:
    response = client.post(f"{API}/timeseries/anomalies", json={"multiplier": 0})
    assert response.status_code == 200


def test_root_lists_analytics_areas(client: TestClient) -> None:
    body = client.get("/").json()
    assert body["health"] == f"{API}/health"
    assert f"{API}/customers/churn" in body["areas"]["customers"]
    assert f"{API}/timeseries/anomalies" in body["areas"]["timeseries"]
    assert "health" not in body["areas"]
