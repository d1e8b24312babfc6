from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='VideoRecord',
            fields=[
                ('id', models.CharField(help_text='Opaque random hex token', max_length=64, primary_key=True, serialize=False)),
                ('original_name', models.CharField(help_text='Client supplied filename, display only', max_length=512)),
                ('stored_name', models.CharField(help_text='Blob name inside the upload directory', max_length=512, unique=True)),
                ('size', models.BigIntegerField(help_text='File size in bytes')),
                ('mime', models.CharField(help_text='MIME type sniffed via python-magic', max_length=128)),
                ('uploaded_at', models.DateTimeField(db_index=True)),
                ('downloads', models.PositiveBigIntegerField(default=0)),
                ('title', models.CharField(blank=True, default='', max_length=255)),
                ('password', models.CharField(blank=True, default='', help_text='Optional per-file download password', max_length=255)),
            ],
            options={
                'verbose_name': 'Video',
                'verbose_name_plural': 'Videos',
                'db_table': 'videos',
                'ordering': ['uploaded_at', 'id'],
            },
        ),
    ]
