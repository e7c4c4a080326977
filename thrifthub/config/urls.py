"""
URL configuration for the ThriftHub back office.

Every app mounts its endpoints under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "ThriftHub Admin Panel"
admin.site.site_title = "ThriftHub Admin Portal"
admin.site.index_title = "Welcome to the DutchThrift back office"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('thrifthub.core.urls')),
    path('api/v1/', include('thrifthub.customers.urls')),
    path('api/v1/', include('thrifthub.orders.urls')),
    path('api/v1/', include('thrifthub.returns.urls')),
    path('api/v1/', include('thrifthub.repairs.urls')),
    path('api/v1/', include('thrifthub.todos.urls')),
    path('api/v1/', include('thrifthub.appointments.urls')),
    path('api/v1/', include('thrifthub.cases.urls')),
    path('api/v1/', include('thrifthub.mail.urls')),
    path('api/v1/', include('thrifthub.notes.urls')),
    path('api/v1/', include('thrifthub.purchasing.urls')),
    path('api/v1/', include('thrifthub.scheduling.urls')),
]
