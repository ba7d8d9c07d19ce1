from flask import Flask, jsonify, request
from flask_cors import CORS
from utils import retrieve_flattened
import logging
import os

logger = logging.getLogger(__name__)

ALLOWED_ORIGIN = os.getenv('ALLOWED_ORIGIN', 'http://localhost:3000')

app = Flask(__name__)
app.json.sort_keys = False  # records keep their field order
CORS(app, origins=[ALLOWED_ORIGIN])  # flask-cors allows every method and header by default


def flattened_response(kind):
    # The dashboard sends ?date=..., filtering happens client side
    requested_date = request.args.get('date')
    if requested_date:
        logger.debug(f"Ignoring date filter {requested_date} for {kind} data")

    try:
        return jsonify(retrieve_flattened(kind))
    except Exception as e:
        # Failures are reported with status 200, the dashboard only checks response.ok
        message = f"Failed to retrieve {kind} data: {str(e)}"
        logger.error(message)
        return message, 200, {'Content-Type': 'text/plain; charset=utf-8'}


@app.route('/api/elecDemand', methods=['GET'])
def get_demand_data():
    return flattened_response('demand')


@app.route('/api/elecProduction', methods=['GET'])
def get_production_data():
    return flattened_response('production')

# Only used when running directly with python app.py (development)
if __name__ == '__main__':
    app.run(port=int(os.getenv('PORT', '5037')), debug=False)
