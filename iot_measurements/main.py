from iot_measurements.factory import create_app

app = create_app()
