from django.urls import path
from .views import ConvertView, RatesView

urlpatterns = [
    path('convert/', ConvertView.as_view(), name='convert'),
    path('rates/', RatesView.as_view(), name='rates'),
]
