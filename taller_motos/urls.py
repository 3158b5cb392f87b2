from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('taller.urls')),
    path('api/inventario/', include('inventario.urls')),
]
