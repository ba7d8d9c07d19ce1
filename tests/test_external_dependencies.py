import pytest
import os
import json
import importlib
from unittest.mock import patch, Mock
import requests
import utils


class TestExternalDependencies:
    """Test suite for external dependencies and environment handling"""

    def teardown_method(self):
        """Restore module level configuration after each test"""
        importlib.reload(utils)

    def test_environment_variable_loading(self):
        """Test that feed URLs are read from the environment"""
        with patch.dict(os.environ, {
            'DEMAND_URL': 'http://test.com/demand.json',
            'PRODUCTION_URL': 'http://test.com/production.json'
        }):
            # Reload the module to pick up new env vars
            importlib.reload(utils)

            assert utils.DEMAND_URL == 'http://test.com/demand.json'
            assert utils.FEEDS['production'][0] == 'http://test.com/production.json'

            with patch('requests.get') as mock_get:
                mock_response = Mock()
                mock_response.status_code = 200
                mock_response.text = json.dumps({'details': []})
                mock_get.return_value = mock_response

                utils.retrieve_flattened('demand')

                mock_get.assert_called_once_with('http://test.com/demand.json')

    def test_default_feed_urls(self):
        """Test the default Hydro-Quebec feed URLs"""
        with patch.dict(os.environ, {}, clear=True):
            with patch('dotenv.load_dotenv'):
                importlib.reload(utils)

            assert utils.DEMAND_URL == 'https://www.hydroquebec.com/data/documents-donnees/donnees-ouvertes/json/demande.json'
            assert utils.PRODUCTION_URL == 'https://www.hydroquebec.com/data/documents-donnees/donnees-ouvertes/json/production.json'

    def test_network_timeout_handling(self):
        """Test handling of network timeouts"""
        with patch('requests.get') as mock_get:
            mock_get.side_effect = requests.exceptions.Timeout("Request timed out")

            with pytest.raises(requests.exceptions.Timeout):
                utils.fetch_data_from_url('http://test.com/demande.json')

    def test_no_retry_on_failure(self):
        """Test a failed fetch is attempted exactly once"""
        with patch('requests.get') as mock_get:
            mock_response = Mock()
            mock_response.status_code = 502
            mock_get.return_value = mock_response

            with pytest.raises(utils.UpstreamFetchError):
                utils.fetch_data_from_url('http://test.com/demande.json')

            assert mock_get.call_count == 1

    def test_feed_rate_limiting(self):
        """Test handling of feed rate limiting"""
        with patch('requests.get') as mock_get:
            mock_response = Mock()
            mock_response.status_code = 429
            mock_get.return_value = mock_response

            with pytest.raises(utils.UpstreamFetchError, match="Status code: 429"):
                utils.fetch_data_from_url('http://test.com/demande.json')

    def test_feed_structure_changes(self):
        """Test handling of changes in the feed structure"""
        with patch('requests.get') as mock_get:
            mock_response = Mock()
            mock_response.status_code = 200
            mock_response.text = json.dumps({'donnees': [], 'dateStart': '01/05/2024'})
            mock_get.return_value = mock_response

            with pytest.raises(utils.ParseError, match="details"):
                utils.retrieve_flattened('demand')

    def test_details_entries_of_wrong_shape(self):
        """Test observation entries that are not objects"""
        document = json.dumps({'details': [{'date': '01/05/2024 13:00:00', 'valeurs': ['12345']}]})

        with pytest.raises(utils.ParseError, match="valeurs"):
            utils.flatten_demand_data(document)

    def test_empty_body(self):
        """Test a successful response with an empty body"""
        with patch('requests.get') as mock_get:
            mock_response = Mock()
            mock_response.status_code = 200
            mock_response.text = ''
            mock_get.return_value = mock_response

            with pytest.raises(utils.ParseError):
                utils.retrieve_flattened('production')
