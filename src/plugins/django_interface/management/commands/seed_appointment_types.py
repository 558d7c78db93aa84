from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from plugins.django_interface.models import AppointmentType, Procedure

# Tipos de consulta padrão (duração em minutos)
APPOINTMENT_TYPES = [
    {'type_name': 'Consultation', 'duration_minutes': 30,  'color_code': '#3498db'},
    {'type_name': 'Cleaning',     'duration_minutes': 45,  'color_code': '#2ecc71'},
    {'type_name': 'Filling',      'duration_minutes': 60,  'color_code': '#e74c3c'},
    {'type_name': 'Crown',        'duration_minutes': 90,  'color_code': '#f39c12'},
    {'type_name': 'Root Canal',   'duration_minutes': 120, 'color_code': '#9b59b6'},
    {'type_name': 'Extraction',   'duration_minutes': 45,  'color_code': '#e67e22'},
    {'type_name': 'Emergency',    'duration_minutes': 30,  'color_code': '#c0392b'},
]

# Catálogo mínimo de procedimentos faturáveis
PROCEDURES = [
    {'procedure_code': 'D0120', 'procedure_name': 'Periodic Oral Evaluation', 'category': 'diagnostic',    'base_cost': Decimal('65.00'),   'duration_minutes': 30},
    {'procedure_code': 'D1110', 'procedure_name': 'Prophylaxis - Adult',      'category': 'preventive',    'base_cost': Decimal('110.00'),  'duration_minutes': 45},
    {'procedure_code': 'D2391', 'procedure_name': 'Resin Composite, 1 Surface', 'category': 'restorative', 'base_cost': Decimal('180.00'),  'duration_minutes': 60},
    {'procedure_code': 'D2740', 'procedure_name': 'Crown - Porcelain/Ceramic', 'category': 'prosthodontic', 'base_cost': Decimal('1200.00'), 'duration_minutes': 90},
    {'procedure_code': 'D3310', 'procedure_name': 'Endodontic Therapy, Anterior', 'category': 'endodontic', 'base_cost': Decimal('850.00'),  'duration_minutes': 120},
    {'procedure_code': 'D7140', 'procedure_name': 'Extraction, Erupted Tooth', 'category': 'surgical',     'base_cost': Decimal('195.00'),  'duration_minutes': 45},
]


class Command(BaseCommand):
    help = 'Seed dos tipos de consulta padrão (e, opcionalmente, do catálogo de procedimentos)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--with-procedures',
            action='store_true',
            help='Também cria/atualiza o catálogo mínimo de procedimentos.',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write('🌿 Iniciando seeding de AppointmentType...')
        created = updated = 0

        for cfg in APPOINTMENT_TYPES:
            _obj, created_flag = AppointmentType.objects.update_or_create(
                type_name=cfg['type_name'],
                defaults={
                    'duration_minutes': cfg['duration_minutes'],
                    'color_code': cfg['color_code'],
                    'is_active': True,
                },
            )
            if created_flag:
                created += 1
            else:
                updated += 1

        if options['with_procedures']:
            for cfg in PROCEDURES:
                _obj, created_flag = Procedure.objects.update_or_create(
                    procedure_code=cfg['procedure_code'],
                    defaults={k: v for k, v in cfg.items() if k != 'procedure_code'},
                )
                if created_flag:
                    created += 1
                else:
                    updated += 1

        self.stdout.write(self.style.SUCCESS(
            f"✅ Seeding concluído: {created} criados, {updated} atualizados."
        ))
