from django.urls import path
from .consumers import ConversionConsumer

websocket_urlpatterns = [
    path('ws/conversions/', ConversionConsumer.as_asgi()),
]
