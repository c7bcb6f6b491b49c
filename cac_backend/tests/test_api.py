"""
HTTP API Test Module

Exercises the FastAPI application through TestClient: uploads, both analysis
endpoints, report data and the service endpoints.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from cac_backend.core.config import Settings
from cac_backend.core.dependencies import get_settings_dependency


pytestmark = pytest.mark.api


# =============================================================================
# Test Class: TestServiceEndpoints
# =============================================================================

class TestServiceEndpoints:

    def test_health(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        assert response.json() == {'status': 'OK', 'service': 'CAC Calculator Pro'}

    def test_root(self, client):
        body = client.get('/').json()
        assert body['name'] == 'CAC Calculator Pro API'
        assert body['docs'] == '/docs'

    @pytest.mark.asyncio
    async def test_health_async(self):
        from cac_backend.main import app

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url='http://test') as async_client:
            response = await async_client.get('/health')

        assert response.status_code == 200
        assert response.json()['status'] == 'OK'


# =============================================================================
# Test Class: TestUploadEndpoint
# =============================================================================

class TestUploadEndpoint:

    def test_csv_upload(self, client):
        response = client.post(
            '/api/upload',
            files={'dataFile': ('marketing.csv', b'date,channel,spend\n2024-01-01,Google Ads,1000\n', 'text/csv')},
        )

        assert response.status_code == 200
        body = response.json()
        assert body['headers'] == ['date', 'channel', 'spend']
        assert body['data'] == [{'date': '2024-01-01', 'channel': 'Google Ads', 'spend': 1000.0}]
        assert body['rowCount'] == 1
        assert body['filename'] == 'marketing.csv'
        assert body['fileType'] == 'csv'

    def test_repeat_upload_is_cached(self, client, upload_cache):
        files = {'dataFile': ('marketing.csv', b'channel,spend\nX,1\n', 'text/csv')}

        first = client.post('/api/upload', files=files)
        second = client.post('/api/upload', files=files)

        assert first.json() == second.json()
        assert len(upload_cache) == 1

    def test_missing_file(self, client):
        response = client.post(
            '/api/upload',
            files={'otherField': ('marketing.csv', b'channel,spend\nX,1\n', 'text/csv')},
        )

        assert response.status_code == 400
        assert response.json()['detail'] == 'No file uploaded'

    def test_unsupported_type(self, client):
        response = client.post(
            '/api/upload',
            files={'dataFile': ('notes.txt', b'hello', 'text/plain')},
        )

        assert response.status_code == 400
        assert response.json()['detail'] == 'Unsupported file type'

    def test_ragged_csv_rows(self, client):
        response = client.post(
            '/api/upload',
            files={'dataFile': ('m.csv', b'date,channel,spend\n2024-01-01,A,100\n2024-01-02,A,100,extra\n', 'text/csv')},
        )

        assert response.status_code == 200
        assert response.json()['rowCount'] == 2

    def test_header_only_file(self, client):
        response = client.post(
            '/api/upload',
            files={'dataFile': ('empty.csv', b'date,channel,spend\n', 'text/csv')},
        )

        assert response.status_code == 400
        assert response.json()['detail'] == 'Empty file'

    def test_file_over_limit(self, client):
        from cac_backend.main import app

        app.dependency_overrides[get_settings_dependency] = lambda: Settings(max_upload_bytes=10)
        response = client.post(
            '/api/upload',
            files={'dataFile': ('big.csv', b'channel,spend\nGoogle Ads,1000\n', 'text/csv')},
        )

        assert response.status_code == 413


# =============================================================================
# Test Class: TestAnalyzeEndpoint
# =============================================================================

class TestAnalyzeEndpoint:

    def test_analyze(self, client, google_ads_marketing, google_ads_revenue, underperforming_facebook):
        response = client.post('/api/analyze', json={
            'marketing': google_ads_marketing + underperforming_facebook,
            'revenue': google_ads_revenue,
        })

        assert response.status_code == 200
        body = response.json()
        assert body['totalSpend'] == 2000.0
        assert body['totalCustomers'] == 21.0
        assert body['channelPerformance']['Google Ads']['grade'] == 'A'
        assert body['channelPerformance']['Facebook']['efficiencyScore'] == 3
        assert body['timeAnalysis']['trends']['cac_trend'] == 'stable'
        assert body['dataQuality'] == {'completeness': '100%', 'marketingRows': 2, 'revenueRows': 1}
        assert len(body['rawData']['marketing']) == 2

        strategic = body['opportunities'][0]
        assert strategic['type'] == 'strategic_reallocation'
        assert 'channel' not in strategic
        assert strategic['budgetMove'] == {
            'from': 'Facebook',
            'to': 'Google Ads',
            'amount': 250,
            'frequency': 'daily',
        }

    def test_analyze_requires_marketing(self, client):
        response = client.post('/api/analyze', json={'marketing': [], 'revenue': [{'revenue': 1}]})

        assert response.status_code == 400
        assert response.json()['detail'] == 'Marketing data required'

    def test_analyze_tolerates_malformed_values(self, client):
        response = client.post('/api/analyze', json={
            'marketing': [{'channel': 'X', 'spend': 'lots', 'customers': None}],
        })

        assert response.status_code == 200
        assert response.json()['blendedCAC'] == 0.0


# =============================================================================
# Test Class: TestAnalyzeCACEndpoint
# =============================================================================

class TestAnalyzeCACEndpoint:

    def test_analyze_cac(self, client, sample_marketing_rows, sample_revenue_rows):
        response = client.post('/api/analyze-cac', json={
            'businessModel': {'businessType': 'saas'},
            'marketingData': sample_marketing_rows,
            'revenueData': sample_revenue_rows,
            'additionalCosts': {'teamCosts': 500, 'toolCosts': 300, 'overheadCosts': 200},
            'analysisConfig': {'timeRange': 'Q1'},
        })

        assert response.status_code == 200
        body = response.json()
        calculations = body['calculations']
        assert calculations['simpleBlended']['value'] == 75.0
        assert calculations['fullyLoaded']['value'] == 125.0
        assert calculations['contributionMargin']['value'] == 150.0
        assert set(calculations['channelSpecific']['channels']) == {'Google Ads', 'Facebook', 'LinkedIn'}
        assert set(calculations['cohortBased']['cohorts']) == {'2024-01', '2024-02', 'Unknown'}
        assert body['recommendations'][0]['type'] == 'quick_win'
        assert body['metadata']['timeRange'] == 'Q1'

    def test_revenue_data_required(self, client, sample_marketing_rows):
        response = client.post('/api/analyze-cac', json={'marketingData': sample_marketing_rows})

        assert response.status_code == 400
        assert response.json()['detail'] == 'Marketing and revenue data are required'

    def test_empty_lists_are_accepted(self, client):
        response = client.post('/api/analyze-cac', json={'marketingData': [], 'revenueData': []})

        assert response.status_code == 200
        assert response.json()['calculations']['simpleBlended']['value'] == 0.0


# =============================================================================
# Test Class: TestReportDataEndpoint
# =============================================================================

class TestReportDataEndpoint:

    def test_report_from_cac_results(self, client, sample_marketing_rows, sample_revenue_rows):
        results = client.post('/api/analyze-cac', json={
            'marketingData': sample_marketing_rows,
            'revenueData': sample_revenue_rows,
        }).json()

        response = client.post('/api/generate-report-data', json={
            'results': results,
            'businessModel': {'businessType': 'saas', 'revenueModel': 'subscription'},
            'marketingData': sample_marketing_rows,
            'revenueData': sample_revenue_rows,
        })

        assert response.status_code == 200
        body = response.json()
        config = body['summary']['businessConfig']
        assert config['businessType'] == 'saas'
        assert config['revenueModel'] == 'subscription'
        assert config['customerDefinition'] == 'Not specified'
        assert body['summary']['keyMetrics']['totalCampaigns'] == 3
        assert body['cacBreakdown']['simpleBlended']['value'] == 75.0
        assert set(body['channelAnalysis']) == {'Google Ads', 'Facebook'}
        assert [insight['type'] for insight in body['insights']] == ['methodology', 'channel']

    def test_empty_report(self, client):
        response = client.post('/api/generate-report-data', json={})

        assert response.status_code == 200
        body = response.json()
        assert body['cacBreakdown'] is None
        assert body['insights'] == []
        assert body['summary']['keyMetrics']['totalSpend'] == 0.0
